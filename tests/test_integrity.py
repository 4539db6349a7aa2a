from mlt_exam.integrity import IntegrityMonitor


class Counter:
    def __init__(self):
        self.value = 0

    def __call__(self):
        self.value += 1
        return self.value


def test_counts_only_hidden_transitions():
    counter = Counter()
    monitor = IntegrityMonitor(counter)
    for hidden in (True, False, True, False):
        monitor.observe(hidden)
    assert counter.value == 2
    assert monitor.count == 2


def test_repeated_hidden_signal_counts_once():
    counter = Counter()
    monitor = IntegrityMonitor(counter)
    monitor.observe(True)
    monitor.observe(True)
    assert counter.value == 1


def test_visible_signals_never_count():
    counter = Counter()
    monitor = IntegrityMonitor(counter)
    monitor.observe(False)
    monitor.observe(False)
    assert counter.value == 0


def test_starting_hidden_needs_visible_first():
    counter = Counter()
    monitor = IntegrityMonitor(counter, hidden=True)
    monitor.observe(True)
    monitor.observe(False)
    monitor.observe(True)
    assert counter.value == 1
