import pytest

from cellmonitor.database import ConnectionManager
from cellmonitor.errors import DbConnectionError, QueryError
from cellmonitor.models import SavedSettings
from cellmonitor.session import MonitorSession, ViewState
from fakes import FakeDatabase, FakeView

FORM = SavedSettings(host="SRV01\\INST1", user="operator", password="pw", database="Cells")


@pytest.fixture
def db():
    return FakeDatabase([(5, 200), (1, 180), (3, 190), (9, 0)])


@pytest.fixture
def configs():
    return []


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def session(dispatcher, settings_store, db, configs, notifications):
    def open_db(config):
        configs.append(config)
        return db

    s = MonitorSession(
        dispatcher,
        settings_store,
        manager=ConnectionManager(open_db),
        notify=lambda title, message: notifications.append(message),
    )
    s.attach(FakeView())
    return s


def connect(session, dispatcher, form=FORM):
    session.connect(form)
    dispatcher.run_jobs()  # handshake
    dispatcher.run_jobs()  # first fetch


def test_starts_disconnected(session):
    assert session.state is ViewState.DISCONNECTED
    assert session.view.status == "Disconnected"


def test_connect_renders_first_poll(session, dispatcher, configs):
    session.connect(FORM)
    assert session.state is ViewState.CONNECTING
    assert session.view.status == "Connecting..."

    dispatcher.run_jobs()
    assert session.state is ViewState.CONNECTED
    assert session.view.monitor_tab_selected
    assert configs[0].server == "SRV01"
    assert configs[0].instance_name == "INST1"

    dispatcher.run_jobs()
    assert [t.number for t in session.view.tiles] == [1, 3, 5]
    stats = session.view.stats
    assert (stats.total, stats.free, stats.occupied) == (3, 1, 1)


def test_connect_saves_form_only_when_remembered(session, dispatcher, settings_store):
    connect(session, dispatcher)
    assert settings_store.kv.get("cellMonitorSettings") is None
    session.disconnect()

    session.set_remember(True, FORM)
    assert settings_store.load() == FORM
    settings_store.kv.remove("cellMonitorSettings")
    connect(session, dispatcher)
    assert settings_store.load() == FORM


def test_connect_failure_stays_disconnected_with_error(dispatcher, settings_store):
    def refuse(config):
        raise DbConnectionError("Login failed for user 'sa'.")

    session = MonitorSession(dispatcher, settings_store, manager=ConnectionManager(refuse))
    session.attach(FakeView())
    session.connect(FORM)
    dispatcher.run_jobs()

    assert session.state is ViewState.DISCONNECTED
    assert session.view.error == "Login failed for user 'sa'."
    assert session.view.status == "Connection failed"
    assert not session.poller.active


def test_editing_a_field_clears_the_error(session):
    session.view.show_error("Login failed")
    session.edit_field()
    assert session.view.error is None


def test_connect_while_connected_is_rejected(session, dispatcher, configs):
    connect(session, dispatcher)
    session.connect(FORM)
    assert session.view.error == "Already connected; disconnect first"
    assert dispatcher.jobs == []
    assert len(configs) == 1
    assert session.state is ViewState.CONNECTED


def test_disconnect_resets_view_and_closes_handle(session, dispatcher, db):
    connect(session, dispatcher)
    session.disconnect()
    assert db.closed
    assert session.state is ViewState.DISCONNECTED
    assert session.view.tiles is None
    assert dispatcher.timers == {}
    assert not session.manager.is_connected


def test_fetch_pending_during_disconnect_does_not_repopulate_grid(session, dispatcher):
    connect(session, dispatcher)
    dispatcher.fire_timers()
    assert len(dispatcher.jobs) == 1  # fetch in flight

    session.disconnect()
    dispatcher.run_jobs()

    assert session.view.tiles is None
    assert session.view.status == "Disconnected"


def test_poll_error_shows_message_and_keeps_polling(session, dispatcher, db, notifications):
    connect(session, dispatcher)
    db.error = QueryError("Invalid object name 'dbo.tb_Cells'")
    dispatcher.fire_timers()
    dispatcher.run_jobs()

    assert session.view.status == "Error: Invalid object name 'dbo.tb_Cells'"
    assert session.state is ViewState.CONNECTED
    assert len(dispatcher.timers) == 1
    assert len(notifications) == 1

    dispatcher.fire_timers()
    dispatcher.run_jobs()
    assert len(notifications) == 1  # only transitions notify

    db.error = None
    dispatcher.fire_timers()
    dispatcher.run_jobs()
    assert session.view.status == "Connected"
    assert notifications[-1] == "Polling restored"


def test_shutdown_during_handshake_closes_late_connection(session, dispatcher, db):
    session.connect(FORM)
    session.shutdown()
    dispatcher.run_jobs()

    assert db.closed
    assert session.state is ViewState.DISCONNECTED
    assert not session.manager.is_connected
    assert not session.poller.active


def test_stale_handshake_after_reconnect_keeps_live_connection(dispatcher, settings_store):
    slow, fast = FakeDatabase([(1, 180)]), FakeDatabase([(2, 200)])
    handles = {"SLOW": slow, "FAST": fast}
    manager = ConnectionManager(lambda config: handles[config.server])
    session = MonitorSession(dispatcher, settings_store, manager=manager)
    session.attach(FakeView())

    session.connect(SavedSettings(host="SLOW", database="Cells"))
    session.disconnect()
    session.connect(SavedSettings(host="FAST", database="Cells"))

    dispatcher.run_job(1)  # second handshake lands first
    assert session.state is ViewState.CONNECTED
    assert manager.handle is fast

    dispatcher.run_job(0)  # the abandoned handshake finishes late
    assert slow.closed
    assert not fast.closed
    assert manager.handle is fast
    assert session.state is ViewState.CONNECTED

    dispatcher.run_jobs()  # first poll uses the live connection
    assert [t.number for t in session.view.tiles] == [2]


def test_disconnect_waits_for_running_fetch_before_closing(session, dispatcher, db):
    connect(session, dispatcher)
    db.on_execute = session.disconnect  # user clicks Disconnect while the query runs
    dispatcher.fire_timers()
    dispatcher.run_jobs()

    assert db.closed
    assert not db.closed_during_execute
    assert session.state is ViewState.DISCONNECTED
    assert session.view.tiles is None


def test_disconnect_with_fetch_pending_closes_when_fetch_returns(session, dispatcher, db):
    connect(session, dispatcher)
    dispatcher.fire_timers()
    session.disconnect()
    assert not db.closed
    assert not session.manager.is_connected

    dispatcher.run_jobs()
    assert db.closed
