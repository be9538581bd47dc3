from focusforge.di.container import Container
from focusforge.services.config.ini_config_service import IniConfigService
from focusforge.services.notifications import DesktopNotifier
from focusforge.services.timers.launcher import QtProcessLauncher
from focusforge.utils.constants import ENV_WORK_DIR


def test_container_wires_services_and_creates_work_dir(tmp_path, monkeypatch, user_cfg_dir):
    monkeypatch.setenv(ENV_WORK_DIR, str(tmp_path / "env-work"))
    c = Container()
    assert c.paths.root == tmp_path / "env-work"
    assert c.paths.root.is_dir()
    assert c.paths.logs_dir.is_dir()
    assert isinstance(c.config, IniConfigService)
    assert isinstance(c.launcher, QtProcessLauncher)
    assert isinstance(c.notifier, DesktopNotifier)
    assert c.sessions is not None and c.breaks is not None
    assert c.enforcement is not None and c.scheduler is not None
    assert c.stats is not None


def test_explicit_work_dir_wins_over_env(tmp_path, monkeypatch, user_cfg_dir):
    monkeypatch.setenv(ENV_WORK_DIR, str(tmp_path / "env-work"))
    c = Container.default(tmp_path / "mine")
    assert c.paths.root == tmp_path / "mine"
    assert c.paths.session_json.parent == c.paths.root


def test_default_reads_work_options_from_ini(tmp_path, user_cfg_dir):
    cfg = tmp_path / "custom.ini"
    cfg.write_text("[work]\nwork_duration = 600\n[enforcement]\nmode = strict\n", encoding="utf-8")
    c = Container.default(tmp_path / "w", config_path=cfg)
    assert c.options.work_duration == 600
    assert c.enforcement.mode == "strict"


def test_services_share_one_enforcement_state(container):
    container.enforcement.set_mode("coaching")
    container.sessions.start()
    assert container.sessions.record_violation("chat").mode == "coaching"
    assert container.enforcement.get_violations() == 1


def test_default_falls_back_to_the_checkout_config(tmp_path, monkeypatch, user_cfg_dir):
    checkout = tmp_path / "checkout"
    (checkout / "config").mkdir(parents=True)
    (checkout / "config" / "config.ini").write_text("[work]\nwork_duration = 900\n", encoding="utf-8")
    monkeypatch.setattr("focusforge.di.container._project_root", lambda: checkout)

    c = Container.default(tmp_path / "w")
    assert c.options.work_duration == 900
