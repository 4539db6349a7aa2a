"""Mock exam engine and performance analytics for the SCFHS MLT exam."""
