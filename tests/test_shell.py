"""Tests for the dispatcher and REPL."""

import io
import os
import subprocess
from pathlib import Path

import pytest
from ysh.config import Config
from ysh.shell import CLEAR_SCREEN, Dispatcher, Outcome, State, repl


class FakeRunner:
    """Records invocations instead of starting processes."""

    def __init__(self, returncode=0, missing=(), denied=()):
        self.calls = []
        self.returncode = returncode
        self.missing = set(missing)
        self.denied = set(denied)

    def __call__(self, argv, env=None, cwd=None):
        if argv[0] in self.missing:
            raise FileNotFoundError(argv[0])
        if argv[0] in self.denied:
            raise PermissionError(argv[0])
        self.calls.append({"argv": argv, "env": env, "cwd": cwd})
        return subprocess.CompletedProcess(argv, self.returncode)


@pytest.fixture
def state(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return State(pwd=tmp_path, host="box", user="me", prompt_format="{user}@{host}$ ")


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def dispatcher(state, runner):
    return Dispatcher(state, Config(), stdout=io.StringIO(), stderr=io.StringIO(), runner=runner)


class TestState:
    """Tests for State."""

    def test_prompt(self, state):
        assert state.prompt == "me@box$ "

    def test_prompt_with_pwd(self, tmp_path):
        st = State(pwd=tmp_path, host="h", user="u", prompt_format="{pwd}> ")
        assert st.prompt == f"{tmp_path}> "

    def test_bad_prompt_format_falls_back(self, tmp_path):
        st = State(pwd=tmp_path, host="h", user="u", prompt_format="{nope} $ ")
        assert st.prompt == f"u@h {tmp_path} $ "

    def test_discover(self, monkeypatch):
        monkeypatch.setenv("HOST", "old")
        monkeypatch.setenv("USER", "old")
        monkeypatch.setattr("ysh.shell.socket.gethostname", lambda: "myhost")
        monkeypatch.setattr("ysh.shell.getpass.getuser", lambda: "myself")
        st = State.discover(Config(prompt="> "))
        assert st.host == "myhost"
        assert st.user == "myself"
        assert st.pwd == Path.cwd()
        assert st.prompt == "> "
        assert os.environ["HOST"] == "myhost"
        assert os.environ["USER"] == "myself"

    def test_cd(self, state, tmp_path):
        (tmp_path / "sub").mkdir()
        state.cd(Path("sub"))
        assert state.pwd == (tmp_path / "sub").resolve()
        assert Path.cwd() == state.pwd

    def test_cd_missing(self, state):
        with pytest.raises(FileNotFoundError):
            state.cd(Path("nowhere"))

    def test_cd_to_file(self, state, tmp_path):
        (tmp_path / "file.txt").write_text("x")
        with pytest.raises(NotADirectoryError):
            state.cd(Path("file.txt"))


class TestDispatcher:
    """Tests for Dispatcher."""

    def test_invoke(self, dispatcher, runner, tmp_path):
        outcome = dispatcher.run_line("prog a 'b c'")
        assert outcome is Outcome.CONTINUE
        assert runner.calls[0]["argv"] == ["prog", "a", "b c"]
        assert runner.calls[0]["cwd"] == tmp_path

    def test_env_prefix_applied(self, dispatcher, runner):
        dispatcher.run_line('FOO=bar BAZ="q x" prog')
        env = runner.calls[0]["env"]
        assert env["FOO"] == "bar"
        assert env["BAZ"] == "q x"

    def test_config_env_beneath_line_env(self, state, runner):
        config = Config(env={"FOO": "cfg", "BAR": "x"})
        d = Dispatcher(state, config, stdout=io.StringIO(), stderr=io.StringIO(), runner=runner)
        d.run_line("FOO=line prog")
        env = runner.calls[0]["env"]
        assert env["FOO"] == "line"
        assert env["BAR"] == "x"

    def test_exit_status(self, state):
        d = Dispatcher(state, Config(), stdout=io.StringIO(), stderr=io.StringIO(),
                       runner=FakeRunner(returncode=3))
        d.run_line("false")
        assert state.last_status == 3

    def test_command_not_found(self, state):
        stderr = io.StringIO()
        d = Dispatcher(state, Config(), stdout=io.StringIO(), stderr=stderr,
                       runner=FakeRunner(missing=["nope"]))
        assert d.run_line("nope arg") is Outcome.CONTINUE
        assert "ysh: command not found: nope" in stderr.getvalue()
        assert state.last_status == 127

    def test_command_not_executable(self, state):
        stderr = io.StringIO()
        d = Dispatcher(state, Config(), stdout=io.StringIO(), stderr=stderr,
                       runner=FakeRunner(denied=["locked"]))
        assert d.run_line("locked") is Outcome.CONTINUE
        assert "ysh: permission denied: locked" in stderr.getvalue()
        assert state.last_status == 126

    def test_parse_error_is_not_fatal(self, dispatcher, runner):
        assert dispatcher.run_line('echo "never closed') is Outcome.CONTINUE
        assert "ysh: unterminated" in dispatcher.stderr.getvalue()
        assert runner.calls == []
        assert dispatcher.state.last_status == 1

    def test_cd(self, dispatcher, tmp_path):
        (tmp_path / "dir one").mkdir()
        dispatcher.run_line("cd 'dir one'")
        assert dispatcher.state.pwd == (tmp_path / "dir one").resolve()

    def test_cd_failure_is_not_fatal(self, dispatcher):
        assert dispatcher.run_line("cd missing") is Outcome.CONTINUE
        assert "ysh:" in dispatcher.stderr.getvalue()

    def test_cd_without_path(self, dispatcher):
        dispatcher.run_line("cd")
        assert "ysh: cd: no path provided" in dispatcher.stderr.getvalue()

    def test_clear(self, dispatcher):
        dispatcher.run_line("clear")
        assert dispatcher.stdout.getvalue() == CLEAR_SCREEN

    def test_exit(self, dispatcher):
        assert dispatcher.run_line("exit") is Outcome.EXIT

    def test_blank_line(self, dispatcher, runner):
        assert dispatcher.run_line("   \n") is Outcome.CONTINUE
        assert runner.calls == []
        assert dispatcher.stderr.getvalue() == ""


class TestRepl:
    """Tests for the REPL loop."""

    def test_runs_until_exit(self, dispatcher, runner):
        stdin = io.StringIO("first\nexit\nsecond\n")
        repl(dispatcher, stdin)
        assert [c["argv"] for c in runner.calls] == [["first"]]
        assert dispatcher.stdout.getvalue().count("me@box$ ") == 2

    def test_stops_at_eof(self, dispatcher, runner):
        stdin = io.StringIO("one\n\ntwo")
        status = repl(dispatcher, stdin)
        assert [c["argv"] for c in runner.calls] == [["one"], ["two"]]
        assert status == 0

    def test_survives_bad_lines(self, dispatcher, runner):
        stdin = io.StringIO("'open\ncd\nok\n")
        repl(dispatcher, stdin)
        assert [c["argv"] for c in runner.calls] == [["ok"]]
