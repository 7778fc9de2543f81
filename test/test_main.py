"""
Command line tests for Tally
"""

import io
import pytest
import main
from main import OUTPUT_BANNER


@pytest.fixture
def script(tmp_path):
  """Write a script file and return its path"""
  def write(text: str) -> str:
    path = tmp_path / "program.tally"
    path.write_text(text)
    return str(path)
  return write


@pytest.fixture
def no_readline(monkeypatch):
  monkeypatch.setattr(main, "READLINE_AVAILABLE", False)


def feed_input(monkeypatch, lines):
  """Replace input() with a fixed sequence of lines, then EOF"""
  remaining = list(lines)

  def fake_input(prompt=""):
    if not remaining:
      raise EOFError
    return remaining.pop(0)

  monkeypatch.setattr("builtins.input", fake_input)


class TestRunScript:
  """Test running script files"""

  def test_run(self, script, capsys):
    main.main([script("x=2\nx*3\n")])
    out = capsys.readouterr().out.splitlines()
    assert out[0] == 'Unprocessed: ""'
    assert out[1].startswith("Ast: Lines[")
    assert out[2] == OUTPUT_BANNER
    assert out[3:] == ["x = 2", "6"]

  def test_function_lines_print_nothing(self, script, capsys):
    main.main([script("f(a,b)=a+b*2;f(1,2)")])
    out = capsys.readouterr().out.splitlines()
    assert out[3:] == ["5"]

  def test_unprocessed_text_reported(self, script, capsys):
    main.main([script("1+2\n)")])
    out = capsys.readouterr().out.splitlines()
    assert out[0] == 'Unprocessed: ")"'
    assert out[3:] == ["3"]

  def test_runtime_error_exits_after_all_lines(self, script, capsys):
    with pytest.raises(SystemExit) as exc_info:
      main.main([script("y;1")])
    assert exc_info.value.code == 1
    out = capsys.readouterr().out.splitlines()
    assert out[3:] == ["Error: Undefined variable: y", "1"]

  def test_missing_script(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
      main.main([str(tmp_path / "nope.tally")])
    assert exc_info.value.code == 1
    assert "does not exist" in capsys.readouterr().out

  def test_stdin(self, monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("a = 4; a / 8"))
    main.main(["-"])
    out = capsys.readouterr().out.splitlines()
    assert out[3:] == ["a = 4", "0.5"]

  def test_division_by_zero_output(self, script, capsys):
    main.main([script("1/0;0/0")])
    assert capsys.readouterr().out.splitlines()[3:] == ["+Inf", "NaN"]


class TestParseOptions:
  """Test --parse and --tree"""

  def test_parse(self, script, capsys):
    main.main(["--parse", script("x=2;x")])
    out = capsys.readouterr().out.splitlines()
    assert out == [
        'Unprocessed: ""',
        "Ast: Lines[Line[VariableDeclaration[x= Expression[2]] ] Line[Expression[x] ]]",
    ]

  def test_tree(self, script, capsys):
    main.main(["--tree", script("7")])
    out = capsys.readouterr().out.splitlines()
    assert out[0] == 'Unprocessed: ""'
    assert out[1:] == [
        "Lines",
        "  Line",
        "    Expression",
        "      Number('7')",
        "    Whitespace('')",
    ]

  def test_recursion_limit_too_small(self, script):
    with pytest.raises(SystemExit) as exc_info:
      main.main(["--recursion-limit", "10", script("1")])
    assert exc_info.value.code == 2


class TestInteractiveMode:
  """Test the interactive loop"""

  def test_session_keeps_environment(self, monkeypatch, capsys, no_readline):
    feed_input(monkeypatch, ["x = 4", "sq(n) = n * n", "sq(x) + 1", ":env", "exit"])
    main.main(["-i"])
    out = capsys.readouterr().out
    assert "x = 4\n" in out
    assert "17\n" in out
    assert "  sq(n) = <function>" in out

  def test_commands(self, monkeypatch, capsys, no_readline):
    feed_input(monkeypatch, [":parse 1+2", ":reset", ":env", ":help", "1 +"])
    main.main(["-i"])
    out = capsys.readouterr().out
    assert "Lines[Line[Expression[Sum[1 Terms[Term[OpAdd[+] 2]]]] ]]" in out
    assert "Environment cleared" in out
    assert "(no user-defined bindings)" in out
    assert "REPL Commands:" in out
    assert "Parse error: input was not fully consumed" in out
    assert "Goodbye!" in out

  def test_errors_do_not_end_session(self, monkeypatch, capsys, no_readline):
    feed_input(monkeypatch, ["nope(1)", "2*2"])
    main.main(["-i"])
    out = capsys.readouterr().out
    assert "Error: Undefined function: nope" in out
    assert "\n4\n" in out
