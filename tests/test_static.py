"""Tests for the static checker and inline suppression."""

from flashaudit.config.schema import AuditConfig
from flashaudit.findings.models import STATIC
from flashaudit.rules.registry import build_registry
from flashaudit.scanner.static import check_source
from flashaudit.scanner.suppression import SuppressionChecker, parse_inline_suppression
from flashaudit.source.parser import parse_source


def _check(text: str):
    return check_source(text, build_registry(AuditConfig()), parse_source(text))


class TestCheckSource:
    def test_vulnerable_contract(self, vulnerable_contract):
        result = _check(vulnerable_contract)
        found = [(f.rule_id, f.line, f.severity) for f in result.findings]
        assert found == [
            ("TX_ORIGIN_AUTH", 12, "high"),
            ("SELFDESTRUCT", 40, "medium"),
        ]

    def test_finding_fields(self, vulnerable_contract):
        finding = _check(vulnerable_contract).findings[0]
        assert finding.source == STATIC
        assert finding.kind == "security"
        assert finding.category == "access-control"
        assert finding.location.function == "withdrawAll"
        assert finding.recommendation

    def test_clean_contract(self, clean_contract):
        assert _check(clean_contract).findings == []

    def test_reentrancy_high(self, reentrant_contract):
        findings = _check(reentrant_contract).findings
        assert [(f.rule_id, f.line, f.severity) for f in findings] == [
            ("EXTERNAL_CALL_REENTRANCY", 12, "high"),
        ]

    def test_transfer_after_update_medium(self, safe_transfer_contract):
        findings = _check(safe_transfer_contract).findings
        assert [(f.rule_id, f.severity) for f in findings] == [
            ("EXTERNAL_CALL_REENTRANCY", "medium"),
        ]

    def test_commented_code_ignored(self):
        text = "contract A {\n    // require(tx.origin == owner);\n    /* selfdestruct(x); */\n}\n"
        assert _check(text).findings == []

    def test_multiple_rules_same_line_in_table_order(self):
        text = "contract A {\n    function f() public { require(tx.origin == o); t.delegatecall(d); }\n}\n"
        ids = [f.rule_id for f in _check(text).findings]
        assert ids == ["TX_ORIGIN_AUTH", "DELEGATECALL"]

    def test_deterministic(self, vulnerable_contract):
        assert _check(vulnerable_contract).findings == _check(vulnerable_contract).findings

    def test_lone_cr_comment_does_not_swallow_file(self):
        text = "contract A {\r    // owner check\r    function f() public { require(tx.origin == o); }\r}\r"
        findings = _check(text).findings
        assert [(f.rule_id, f.line, f.location.function) for f in findings] == [
            ("TX_ORIGIN_AUTH", 3, "f"),
        ]

    def test_separator_characters_keep_lines_aligned(self):
        text = (
            "contract A {\n"
            "    string s = \"a\x0cb\u2028c\";\n"
            "    function f() public { require(tx.origin == o); }\n"
            "    function g() public { selfdestruct(o); }\n"
            "}\n"
        )
        findings = _check(text).findings
        assert [(f.rule_id, f.line, f.location.function) for f in findings] == [
            ("TX_ORIGIN_AUTH", 3, "f"),
            ("SELFDESTRUCT", 4, "g"),
        ]

    def test_without_unit_has_no_function(self, vulnerable_contract):
        result = check_source(vulnerable_contract, build_registry(AuditConfig()))
        assert result.findings[0].location.function is None


class TestSuppression:
    def test_parse_all(self):
        assert parse_inline_suppression("x; // flashaudit-ignore") == (True, None)

    def test_parse_specific(self):
        ok, ids = parse_inline_suppression("// flashaudit-ignore[TX_ORIGIN_AUTH, DELEGATECALL]")
        assert ok
        assert ids == frozenset({"TX_ORIGIN_AUTH", "DELEGATECALL"})

    def test_no_marker(self):
        assert parse_inline_suppression("require(tx.origin == o);") == (False, None)

    def test_standalone_comment_covers_next_line(self):
        checker = SuppressionChecker(["// flashaudit-ignore", "require(tx.origin == o);", "x;"])
        assert checker.is_suppressed(2, "TX_ORIGIN_AUTH") is not None
        assert checker.is_suppressed(3, "TX_ORIGIN_AUTH") is None

    def test_trailing_comment_covers_same_line_only(self):
        checker = SuppressionChecker(["require(tx.origin == o); // flashaudit-ignore", "x;"])
        assert checker.is_suppressed(1, "TX_ORIGIN_AUTH") is not None
        assert checker.is_suppressed(2, "TX_ORIGIN_AUTH") is None

    def test_specific_rule_only(self):
        checker = SuppressionChecker(["a; // flashaudit-ignore[SELFDESTRUCT]"])
        assert checker.is_suppressed(1, "SELFDESTRUCT").source == "flashaudit-ignore[SELFDESTRUCT]"
        assert checker.is_suppressed(1, "TX_ORIGIN_AUTH") is None

    def test_suppressed_findings_recorded(self):
        text = (
            "contract A {\n"
            "    function f() public {\n"
            "        require(tx.origin == o); // flashaudit-ignore[TX_ORIGIN_AUTH]\n"
            "    }\n"
            "}\n"
        )
        result = _check(text)
        assert result.findings == []
        assert [(s.rule_id, s.line_no) for s in result.suppressed] == [("TX_ORIGIN_AUTH", 3)]
