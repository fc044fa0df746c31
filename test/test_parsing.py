"""
Parser tests for the Quark specification language
Covers the grammar, argument lists, pushback buffer and tree utilities
"""

import io
import dataclasses
import pytest
from parsing import (
    Arg, Event, Constraint, Spec, QuarkParser,
    create_parser, create_debug_parser, parse_string, spec_to_dict, pretty_print_spec
)
from error_handling import SpecParseError


PREFIX = "spec Loan L to B "
TAIL = " detach D [x] discharge Z [y]"


def parse(text):
  return create_parser(text).parse()


def parse_create_args(args_text):
  """Parse a spec whose create event has the given bracketed argument list"""
  return parse(PREFIX + "create C " + args_text + TAIL).create_event.args


def error_for(text):
  with pytest.raises(SpecParseError) as exc_info:
    parse(text)
  return exc_info.value


class TestFullSpec:
  """Test parsing of complete specifications"""

  def test_loan_scenario(self, loan_spec):
    spec = parse(loan_spec)

    assert spec.constraint == Constraint(name="Loan", debtor="L", creditor="B")
    assert spec.create_event == Event("Created", (Arg("amount", "100"), Arg("currency", "USD")))
    assert spec.detach_event == Event("Detached", (Arg("reason"),))
    assert spec.discharge_event == Event("Discharged", (Arg("amount", "100"),))

  def test_events_in_fixed_order(self, loan_spec):
    spec = parse(loan_spec)
    assert [event.name for event in spec.events] == ["Created", "Detached", "Discharged"]

  def test_missing_spec_keyword(self):
    error = error_for("Loan L to B create Created [amount=100] detach D [x] discharge Z [y]")
    assert error.message == 'found "Loan", expected \'spec\''
    assert error.got == "Loan"
    assert error.expected == "'spec'"

  def test_whitespace_insensitive(self, loan_spec):
    compact = (
        "spec Loan L to B create Created[amount=100,currency=USD]"
        "detach Detached[reason]discharge Discharged[amount=100]"
    )
    spread = (
        "\n\n  spec\tLoan\n L   to\r\n B\n"
        "create   Created  [ amount = 100 ,\n\tcurrency=  USD ]\n"
        "detach Detached\n[\nreason\n]\n"
        "discharge Discharged [amount\n=\n100]\n"
    )
    assert parse(compact) == parse(loan_spec)
    assert parse(spread) == parse(loan_spec)

  def test_trailing_content_is_not_read(self, loan_spec):
    stream = io.StringIO(loan_spec + " @@ trailing [")
    spec = QuarkParser(stream).parse()
    assert spec.discharge_event.name == "Discharged"
    assert stream.read() == " @@ trailing ["

  def test_identifiers_may_be_numeric(self):
    spec = parse("spec 1 2 to 3 create 4 [5=6] detach 7 [8] discharge 9 [0]")
    assert spec.constraint == Constraint("1", "2", "3")
    assert spec.create_event.args == (Arg("5", "6"),)

  def test_result_is_immutable(self, loan_spec):
    spec = parse(loan_spec)
    with pytest.raises(dataclasses.FrozenInstanceError):
      spec.constraint = Constraint("X", "Y", "Z")
    with pytest.raises(dataclasses.FrozenInstanceError):
      spec.create_event.args[0].value = "200"
    assert isinstance(spec.create_event.args, tuple)

  def test_fresh_tree_per_parse(self, loan_spec):
    first = parse(loan_spec)
    second = parse(loan_spec)
    assert first == second
    assert first is not second
    assert first.create_event is not second.create_event


class TestArgumentLists:
  """Test the argument list sub-grammar"""

  def test_order_preserved(self):
    assert parse_create_args("[a, b=1, c]") == (Arg("a"), Arg("b", "1"), Arg("c"))

  def test_single_argument(self):
    assert parse_create_args("[a]") == (Arg("a", None),)

  def test_duplicates_kept(self):
    assert parse_create_args("[a=1, a=2, a]") == (Arg("a", "1"), Arg("a", "2"), Arg("a"))

  def test_empty_list_rejected(self):
    error = error_for(PREFIX + "create C []" + TAIL)
    assert error.message == 'found "]", expected field'

  def test_trailing_comma_rejected(self):
    error = error_for(PREFIX + "create C [a,]" + TAIL)
    assert error.message == 'found "]", expected field'

  def test_missing_value_after_equals(self):
    error = error_for(PREFIX + "create C [a=]" + TAIL)
    assert error.message == 'found "]", expected value for "a" when using \'=\''

  def test_equals_followed_by_comma(self):
    error = error_for(PREFIX + "create C [a=,b]" + TAIL)
    assert error.got == ","
    assert "expected value for \"a\"" in error.message

  def test_missing_separator(self):
    error = error_for(PREFIX + "create C [a b]" + TAIL)
    assert error.message == 'found "b", expected \',\' or \']\''

  def test_keyword_as_argument_name(self):
    error = error_for(PREFIX + "create C [to]" + TAIL)
    assert error.message == 'found "to", expected field'

  def test_unterminated_list(self):
    error = error_for(PREFIX + "create C [a")
    assert error.message == 'found "", expected \',\' or \']\''

  def test_missing_open_bracket(self):
    error = error_for(PREFIX + "create C a]" + TAIL)
    assert error.message == 'found "a", expected \'[\''


class TestGrammarErrors:
  """Test error reporting at every grammar position"""

  @pytest.mark.parametrize("text, message", [
      ("", 'found "", expected \'spec\''),
      ("spec", 'found "", expected specification name'),
      ("spec spec L to B", 'found "spec", expected specification name'),
      ("spec Loan [", 'found "[", expected debtor name'),
      ("spec Lo@n L", 'found "@", expected debtor name'),
      ("spec Loan L B", 'found "B", expected \'to\''),
      ("spec Loan L to", 'found "", expected creditor name'),
      ("spec Loan L to B detach D [x]", 'found "detach", expected \'create\''),
      ("spec Loan L to B create [a]", 'found "[", expected event name for \'create\''),
      ("spec Loan L to B create C [a] discharge Z [y]", 'found "discharge", expected \'detach\''),
      ("spec Loan L to B create C [a] detach D [x]", 'found "", expected \'discharge\''),
  ])
  def test_error_messages(self, text, message):
    assert error_for(text).message == message

  def test_keyword_exactness(self):
    """`creates` is an identifier, so it cannot stand in for `create`"""
    error = error_for("spec X Y to Z creates E [a] detach D [x] discharge Z [y]")
    assert error.message == 'found "creates", expected \'create\''

  def test_first_error_only(self):
    error = error_for("spec Loan L B create [] detach")
    assert error.got == "B"

  def test_error_location(self):
    error = error_for("spec Loan L B")
    assert error.location == 12


class TestPushbackBuffer:
  """Test the single-slot pushback buffer"""

  def test_unscan_returns_same_token(self):
    parser = QuarkParser("a b")
    token = parser._scan_ignore_whitespace()
    parser._unscan()
    assert parser._scan_ignore_whitespace() is token

  def test_unscan_skips_whitespace(self):
    parser = QuarkParser("a   b")
    parser._scan_ignore_whitespace()
    second = parser._scan_ignore_whitespace()
    parser._unscan()
    assert parser._scan_ignore_whitespace() == second

  def test_double_unscan_rejected(self):
    parser = QuarkParser("a b")
    parser._scan()
    parser._unscan()
    with pytest.raises(RuntimeError):
      parser._unscan()

  def test_unscan_before_scan_rejected(self):
    with pytest.raises(RuntimeError):
      QuarkParser("a")._unscan()


class TestDebugParser:
  """Test debug tracing"""

  def test_debug_output(self, loan_spec, capsys):
    spec = create_debug_parser(loan_spec).parse()
    output = capsys.readouterr().out
    assert spec.constraint.name == "Loan"
    assert "scan SPEC('spec')" in output
    assert "unscan" in output
    assert "Parsed create event: Created [amount=100, currency=USD]" in output

  def test_quiet_by_default(self, loan_spec, capsys):
    create_parser(loan_spec).parse()
    assert capsys.readouterr().out == ""


class TestParseString:
  """Test the text entry point with line-aware errors"""

  def test_success(self, loan_spec):
    assert parse_string(loan_spec) == parse(loan_spec)

  def test_error_has_position(self):
    text = "spec Loan L to B\ncreate C [a,]"
    with pytest.raises(SpecParseError) as exc_info:
      parse_string(text, "loan.quark")
    error = exc_info.value
    assert error.message == 'found "]", expected field'
    assert (error.line, error.column) == (2, 13)
    assert error.filename == "loan.quark"
    assert "^ Error here" in error.context
    assert "line 2, column 13" in str(error)


class TestTreeUtilities:
  """Test conversion helpers"""

  def test_spec_to_dict(self, loan_spec):
    assert spec_to_dict(parse(loan_spec)) == {
        "constraint": {"name": "Loan", "debtor": "L", "creditor": "B"},
        "create": {
            "name": "Created",
            "args": [{"name": "amount", "value": "100"}, {"name": "currency", "value": "USD"}],
        },
        "detach": {"name": "Detached", "args": [{"name": "reason", "value": None}]},
        "discharge": {"name": "Discharged", "args": [{"name": "amount", "value": "100"}]},
    }

  def test_pretty_print(self, loan_spec):
    text = pretty_print_spec(parse(loan_spec))
    lines = text.splitlines()
    assert lines[0] == "Spec('Loan')"
    assert "  debtor: L" in lines
    assert "  create: Created" in lines
    assert "    currency = 'USD'" in lines
    assert "    reason = <none>" in lines

  def test_arg_and_event_str(self):
    assert str(Arg("a")) == "a"
    assert str(Arg("a", "1")) == "a=1"
    assert str(Event("E", (Arg("a"), Arg("b", "2")))) == "E [a, b=2]"
