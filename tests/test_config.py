from jrepl.jrepl_config import History, ReplSettings, load_settings, read_startup_lines


def test_defaults_live_in_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    settings = load_settings(environ={})
    assert settings.compiler == "javac"
    assert settings.runtime == "java"
    assert settings.timeout == 30.0
    assert settings.history_path == str(tmp_path / ".javarepl_history")
    assert settings.startup_path == str(tmp_path / ".javarepl")


def test_settings_file_then_environment(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("compiler: /opt/jdk/bin/javac\ntimeout: 5\nhistory_size: 10\n", encoding="utf-8")
    settings = load_settings(str(path), environ={"JAVAREPL_TIMEOUT": "2.5", "JAVAREPL_JAVA": "/opt/jdk/bin/java"})
    assert settings.compiler == "/opt/jdk/bin/javac"
    assert settings.runtime == "/opt/jdk/bin/java"
    assert settings.timeout == 2.5
    assert settings.history_size == 10


def test_invalid_settings_are_ignored(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("compiler: 12\ntimeout: -1\nhistory_size: lots\n", encoding="utf-8")
    settings = load_settings(str(path), environ={"JAVAREPL_TIMEOUT": "soon"})
    assert settings == ReplSettings()


def test_null_timeout_disables_limit(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("timeout: null\n", encoding="utf-8")
    assert load_settings(str(path), environ={}).timeout is None


def test_non_mapping_settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    assert load_settings(str(path), environ={}) == ReplSettings()


def test_history_round_trip(tmp_path):
    path = tmp_path / "history"
    history = History(str(path), max_items=3)
    for line in ["int a = 1;", "a", "code", "run"]:
        history.append(line)
    history.append("")
    assert history.save()
    assert path.read_text(encoding="utf-8") == "a\ncode\nrun"

    reloaded = History(str(path), max_items=2)
    assert reloaded.load() == ["code", "run"]


def test_history_seeds_readline(tmp_path, monkeypatch):
    import jrepl.jrepl_config as config_mod

    class FakeReadline:
        def __init__(self):
            self.items = ["stale"]
            self.length = None

        def clear_history(self):
            self.items = []

        def set_history_length(self, n):
            self.length = n

        def add_history(self, line):
            self.items.append(line)

    fake = FakeReadline()
    monkeypatch.setattr(config_mod, "readline", fake)
    path = tmp_path / "history"
    path.write_text("int a = 1;\na\ncode", encoding="utf-8")
    history = History(str(path), max_items=2)
    history.load()
    history.seed_readline()
    assert fake.items == ["a", "code"]
    assert fake.length == 2


def test_history_missing_file_is_empty(tmp_path):
    assert History(str(tmp_path / "none")).load() == []


def test_history_save_error_is_reported(tmp_path, capsys):
    history = History(str(tmp_path))
    history.append("x")
    assert not history.save()
    assert "Error saving" in capsys.readouterr().err


def test_read_startup_lines(tmp_path):
    path = tmp_path / ".javarepl"
    path.write_text("import java.util.*;\naddline int x = 1;\n", encoding="utf-8")
    assert read_startup_lines(str(path)) == ["import java.util.*;", "addline int x = 1;"]
