"""
Interpreter and command line tests for IMP
Trace format, step budgets, file mode, parse-only mode and the REPL
"""

import pytest
from parsing import parse
from interpreter import (
  display_program, display_store, step_through, evaluate, store_snapshot,
  create_interpreter, create_debug_interpreter, make_store
)
from error_handling import IMPRuntimeError, IMPStepLimitError, IMPParseError
from syntax_tree import Skip, Integer, Boolean
import main


COUNTING_PROGRAM = (
  "i := 0; a := 10; b := 0; "
  "while !a >= !b + 2 do (b := !b + 5; i := !i + 1); a := 0"
)

DIVERGING_PROGRAM = (
  "i := 0; a := 10; b := 0; "
  "while !a >= !b + 2 do (a := !b + 5; i := !i + 1); a := 0"
)


class TestDisplay:
  """Test state rendering"""

  def test_empty_store(self):
    assert display_store(make_store()) == "{}"

  def test_store_in_key_order(self):
    store = {"b": Integer(2), "a": Boolean(True), "_c": Skip()}
    assert display_store(store) == "{_c -> skip, a -> true, b -> 2}"

  def test_display_program(self):
    assert display_program(parse("a := 1 + 2"), {"z": Integer(-1)}) == "a = 1 + 2, {z -> -1}"


class TestStepping:
  """Test the stepping loop"""

  def test_assignment_trace(self, store):
    states = [display_program(e, store) for e in step_through(parse("a := 1 + 2"), store)]
    assert states == [
      "a = 1 + 2, {}",
      "a = 3, {}",
      "skip, {a -> 3}",
    ]

  def test_value_yields_only_itself(self, store):
    assert list(step_through(Integer(4), store)) == [Integer(4)]

  def test_evaluate_counting_program(self, store):
    assert evaluate(parse(COUNTING_PROGRAM), store) == Skip()
    assert store_snapshot(store) == {"a": "0", "b": "10", "i": "2"}

  def test_diverging_program_hits_step_limit(self, store):
    with pytest.raises(IMPStepLimitError) as excinfo:
      evaluate(parse(DIVERGING_PROGRAM), store, max_steps=500)
    assert "500" in excinfo.value.message
    assert store["a"] == Integer(5)

  def test_step_limit_is_a_runtime_error(self):
    assert issubclass(IMPStepLimitError, IMPRuntimeError)

  def test_exact_step_budget_is_enough(self, store):
    assert evaluate(parse("a := 1 + 2"), store, max_steps=2) == Skip()

  def test_step_budget_too_small(self, store):
    with pytest.raises(IMPStepLimitError):
      evaluate(parse("a := 1 + 2"), store, max_steps=1)

  def test_deeply_nested_evaluation_is_reported(self, store):
    expr = parse(" + ".join(["1"] * 15000))
    with pytest.raises(IMPRuntimeError) as excinfo:
      evaluate(expr, store)
    assert "nested too deeply" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, RecursionError)

  def test_long_chain_evaluates_with_raised_limit(self, store):
    main.raise_recursion_limit()
    expr = parse(" + ".join(["1"] * 1500))
    assert evaluate(expr, store) == Integer(1500)

  def test_unbound_location_aborts(self, store):
    with pytest.raises(IMPRuntimeError):
      evaluate(parse("a := 1; b := !c"), store)
    assert store == {"a": Integer(1)}


class TestInterpreter:
  """Test the interpreter object"""

  def test_run_source_prints_trace(self, capsys):
    interpreter = create_interpreter()
    result = interpreter.run_source("a := 1 + 2")
    assert result == Skip()
    assert capsys.readouterr().out.splitlines() == [
      "=> a = 1 + 2, {}",
      "=> a = 3, {}",
      "=> skip, {a -> 3}",
    ]

  def test_store_persists_between_runs(self, capsys):
    interpreter = create_interpreter()
    interpreter.run_source("a := 5")
    interpreter.run_source("b := !a + 1")
    assert store_snapshot(interpreter.store) == {"a": "5", "b": "6"}
    interpreter.reset()
    assert interpreter.store == {}

  def test_parse_source_prints_both_forms(self, capsys):
    create_interpreter().parse_source("a := 1 + 2")
    assert capsys.readouterr().out.splitlines() == ["a = 1 + 2", "(:= a (+ 1 2))"]

  def test_parse_error_leaves_store(self):
    interpreter = create_interpreter()
    interpreter.store["a"] = Integer(1)
    with pytest.raises(IMPParseError):
      interpreter.run_source("a :=")
    assert interpreter.store == {"a": Integer(1)}

  def test_debug_interpreter_reports_rules(self, capsys):
    create_debug_interpreter().run_source("a := 1")
    out = capsys.readouterr().out
    assert "Parsed: (:= a 1)" in out
    assert "Transition: Assignment" in out

  def test_debug_parse_shows_tree(self, capsys):
    create_debug_interpreter().parse_source("a := 1 + !b")
    out = capsys.readouterr().out
    assert "Assignment('a')\n  Operation(+)\n    Integer(1)\n    Dereference('b')\n" in out


class TestCommandLine:
  """Test the command line driver"""

  def write_program(self, tmp_path, source):
    program = tmp_path / "program.imp"
    program.write_text(source, encoding="utf-8")
    return str(program)

  def test_runs_file(self, tmp_path, capsys):
    main.main([self.write_program(tmp_path, "a := 1 + 2\n")])
    assert capsys.readouterr().out.splitlines()[-1] == "=> skip, {a -> 3}"

  def test_parse_mode(self, tmp_path, capsys):
    main.main(["--parse", self.write_program(tmp_path, "while !a >= 1 do a := !a + -1")])
    assert capsys.readouterr().out.splitlines() == [
      "while !a >= 1 do (a = !a + -1)",
      "(while (>= !a 1) (:= a (+ !a -1)))",
    ]

  def test_parse_error_exits(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
      main.main([self.write_program(tmp_path, "a := ")])
    assert excinfo.value.code == 1
    assert "Parse error" in capsys.readouterr().out

  def test_runtime_error_exits(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
      main.main([self.write_program(tmp_path, "a := !undefined_name")])
    assert excinfo.value.code == 1
    assert "Unbound location: undefined_name" in capsys.readouterr().out

  def test_step_limit_exits(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
      main.main(["--max-steps", "50", self.write_program(tmp_path, DIVERGING_PROGRAM)])
    assert excinfo.value.code == 1
    assert "Step limit exceeded" in capsys.readouterr().out

  def test_missing_file_exits(self, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
      main.main([str(tmp_path / "missing.imp")])
    assert excinfo.value.code == 1

  def test_directory_exits(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
      main.main([str(tmp_path)])
    assert excinfo.value.code == 1
    assert "Cannot read file" in capsys.readouterr().out

  def test_nested_parentheses_run(self, tmp_path, capsys):
    source = "a := " + "(" * 60 + "1" + ")" * 60
    main.main([self.write_program(tmp_path, source)])
    assert capsys.readouterr().out.splitlines()[-1] == "=> skip, {a -> 1}"

  def test_long_chain_runs(self, tmp_path, capsys):
    main.main([self.write_program(tmp_path, " + ".join(["1"] * 600))])
    assert capsys.readouterr().out.splitlines()[-1] == "=> 600, {}"

  def test_too_deep_program_exits(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
      main.main([self.write_program(tmp_path, " + ".join(["1"] * 15000))])
    assert excinfo.value.code == 1
    assert "nested too deeply" in capsys.readouterr().out

  def test_repl(self, monkeypatch, capsys):
    monkeypatch.setattr(main, "READLINE_AVAILABLE", False)
    lines = iter(["a := 2", "", "b = 1", ":store", ":parse !a + 1", "b := !a + !a", ":quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
    main.main([])
    out = capsys.readouterr().out
    assert "=> skip, {a -> 2}" in out
    assert "Parse error" in out
    assert "{a -> 2}\n" in out
    assert "(+ !a 1)" in out
    assert "=> skip, {a -> 2, b -> 4}" in out

  def test_repl_runtime_error_aborts(self, monkeypatch, capsys):
    monkeypatch.setattr(main, "READLINE_AVAILABLE", False)
    lines = iter(["if 1 then 2 else 3", "skip"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
    with pytest.raises(SystemExit) as excinfo:
      main.main([])
    assert excinfo.value.code == 1
    assert "expected boolean predicate" in capsys.readouterr().out

  def test_repl_exits_on_eof(self, monkeypatch, capsys):
    monkeypatch.setattr(main, "READLINE_AVAILABLE", False)

    def end_of_input(prompt=""):
      raise EOFError

    monkeypatch.setattr("builtins.input", end_of_input)
    main.main([])
    assert "Goodbye!" in capsys.readouterr().out
