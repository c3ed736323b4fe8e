"""Test doubles shared by the test modules."""


class ManualDispatcher:
    """Dispatcher double: timers and background jobs run only when the test says so."""

    def __init__(self):
        self.timers = {}
        self.jobs = []
        self._next_token = 0

    def call_later(self, delay_ms, callback):
        self._next_token += 1
        self.timers[self._next_token] = (delay_ms, callback)
        return self._next_token

    def cancel(self, token):
        self.timers.pop(token, None)

    def run_in_background(self, work, on_done, on_error):
        self.jobs.append((work, on_done, on_error))

    def run_jobs(self):
        jobs, self.jobs = self.jobs, []
        for job in jobs:
            self._run(job)

    def run_job(self, index):
        """Finish one queued job out of order (e.g. a fast handshake overtaking a slow one)."""
        self._run(self.jobs.pop(index))

    def _run(self, job):
        work, on_done, on_error = job
        try:
            result = work()
        except Exception as exc:
            on_error(exc)
        else:
            on_done(result)

    def fire_timers(self):
        timers, self.timers = self.timers, {}
        for _delay, callback in timers.values():
            callback()


class FakeDatabase:
    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.error = None
        self.closed = False
        self.closed_during_execute = False
        self.executing = False
        # Called while a query is "on the wire", to simulate UI events landing mid-fetch
        self.on_execute = None
        self.queries = []

    def execute(self, query):
        self.queries.append(query)
        self.executing = True
        try:
            if self.on_execute is not None:
                self.on_execute()
            if self.error is not None:
                raise self.error
            return list(self.rows)
        finally:
            self.executing = False

    def close(self):
        if self.executing:
            self.closed_during_execute = True
        self.closed = True


class FakeView:
    def __init__(self):
        self.states = []
        self.status = None
        self.error = None
        self.tiles = None
        self.stats = None
        self.monitor_tab_selected = False

    def show_state(self, state):
        self.states.append(state)
        self.status = state.value
        if state.value == "Disconnected":
            self.tiles = None
            self.stats = None

    def set_status(self, text, ok):
        self.status = text

    def show_error(self, message):
        self.error = message

    def hide_error(self):
        self.error = None

    def show_cells(self, tiles, stats):
        self.tiles = tiles
        self.stats = stats

    def select_monitor_tab(self):
        self.monitor_tab_selected = True


