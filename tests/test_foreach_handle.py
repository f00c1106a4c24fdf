from handlecritic.result import ScanResult
from handlecritic.rules import ScanContext
from handlecritic.rules.foreach_handle import (
    EXPLANATION,
    ProhibitForeachHandleRule,
    is_slurping_readline,
    iteration_source,
    list_offenders,
    locate_and_scan,
    locate_candidate,
)
from handlecritic.severity import Severity
from handlecritic.tree import SyntaxTree

WS = {"class": "PPI::Token::Whitespace", "content": " "}


def tok(cls, content, line=None, column=None):
    data = {"class": f"PPI::Token::{cls}", "content": content}
    if line is not None:
        data["line"] = line
        data["column"] = column
    return data


def word(content):
    return tok("Word", content)


def sym(content):
    return tok("Symbol", content)


def op(content):
    return tok("Operator", content)


def readline(content):
    return tok("QuoteLike::Readline", content)


def semi():
    return tok("Structure", ";")


def node(cls, *children, **extra):
    data = {"class": cls, "children": list(children)}
    data.update(extra)
    return data


def paren_list(*children):
    return node("PPI::Structure::List", node("PPI::Statement::Expression", *children), start="(", finish=")")


def block(*children):
    return node("PPI::Structure::Block", *children, start="{", finish="}")


def compound(*children):
    return node("PPI::Statement::Compound", *children)


def plain(*children):
    return node("PPI::Statement", *children)


def document(*statements):
    return SyntaxTree.from_mapping(node("PPI::Document", *statements), source="t.pl")


def violations_in(tree):
    found = []
    for statement in tree.statements():
        found.extend(locate_and_scan(tree, statement))
    return found


def offender_contents(tree):
    return [tree.content(violation.node) for violation in violations_in(tree)]


def run_rule(tree, rule=None):
    result = ScanResult()
    (rule or ProhibitForeachHandleRule()).scan(ScanContext(documents=[tree]), result)
    return result


def test_foreach_over_scalar_handle_is_flagged():
    tree = document(compound(word("foreach"), WS, paren_list(readline("<$fh>")), WS, block()))

    violations = violations_in(tree)

    assert len(violations) == 1
    assert tree.content(violations[0].node) == "<$fh>"
    assert violations[0].description == "You should not use 'foreach' to iterate over a file"
    assert violations[0].explanation == EXPLANATION


def test_foreach_with_my_binding_is_flagged():
    tree = document(
        compound(word("foreach"), WS, word("my"), WS, sym("$line"), WS, paren_list(readline("<$fh>")), WS, block())
    )

    assert offender_contents(tree) == ["<$fh>"]


def test_message_uses_the_keyword_written():
    tree = document(compound(word("for"), WS, paren_list(readline("<FH>")), block()))

    violations = violations_in(tree)

    assert violations[0].description == "You should not use 'for' to iterate over a file"


def test_while_loop_is_never_flagged():
    for handle in ("<$fh>", "<STDIN>", "<>"):
        condition = node(
            "PPI::Structure::Condition",
            node("PPI::Statement::Expression", readline(handle)),
            start="(",
            finish=")",
        )
        tree = document(compound(word("while"), WS, condition, WS, block()))

        assert violations_in(tree) == []


def test_foreach_over_array_is_not_flagged():
    tree = document(compound(word("for"), WS, paren_list(sym("@lines")), WS, block()))

    assert violations_in(tree) == []


def test_misparsed_readline_is_flagged_at_less_than():
    less_than = op("<")
    tree = document(compound(word("foreach"), WS, paren_list(less_than, WS, sym("$fh"), WS, op(">")), block()))

    violations = violations_in(tree)

    assert len(violations) == 1
    assert tree.content(violations[0].node) == "<"
    assert tree.class_name(violations[0].node) == "PPI::Token::Operator"


def test_misparsed_empty_diamond_is_flagged():
    tree = document(compound(word("foreach"), paren_list(op("<"), op(">")), block()))

    assert offender_contents(tree) == ["<"]


def test_less_than_without_closing_operator_is_benign():
    tree = document(compound(word("foreach"), paren_list(sym("$a"), op("<"), sym("$b")), block()))

    assert violations_in(tree) == []


def test_glob_is_not_flagged():
    tree = document(compound(word("foreach"), WS, paren_list(readline("<*.txt>")), WS, block()))

    assert violations_in(tree) == []


def test_readline_shape_distinguishes_handles_from_globs():
    assert is_slurping_readline("<FH>")
    assert is_slurping_readline("<$fh>")
    assert is_slurping_readline("<>")
    assert is_slurping_readline("<STDIN>")
    assert not is_slurping_readline("<*.txt>")
    assert not is_slurping_readline("<$dir/*>")
    assert not is_slurping_readline("<${fh}>")
    assert not is_slurping_readline("<$$fh>")
    assert not is_slurping_readline("<$fh>\n")


def test_only_embedded_readline_is_flagged_in_mixed_list():
    tree = document(
        compound(
            word("foreach"),
            WS,
            paren_list(sym("@a"), op(","), WS, readline("<$fh>"), op(","), WS, sym("@b")),
            WS,
            block(),
        )
    )

    assert offender_contents(tree) == ["<$fh>"]


def test_offenders_follow_source_order():
    tree = document(compound(word("foreach"), paren_list(readline("<$in>"), op(","), readline("<$out>")), block()))

    assert offender_contents(tree) == ["<$in>", "<$out>"]


def test_postfix_for_over_readline_is_flagged():
    tree = document(plain(word("print"), WS, word("for"), WS, readline("<STDIN>"), semi()))

    assert offender_contents(tree) == ["<STDIN>"]


def test_postfix_foreach_over_list_is_flagged():
    tree = document(plain(word("print"), WS, word("foreach"), WS, paren_list(readline("<$fh>")), semi()))

    violations = violations_in(tree)

    assert len(violations) == 1
    assert violations[0].description == "You should not use 'foreach' to iterate over a file"


def test_postfix_for_over_misparsed_readline_is_flagged():
    less_than = op("<")
    tree = document(plain(word("print"), WS, word("for"), WS, less_than, sym("$fh"), op(">"), semi()))

    assert offender_contents(tree) == ["<"]


def test_postfix_without_terminator_is_flagged():
    tree = document(plain(word("print"), word("for"), readline("<$fh>")))

    assert offender_contents(tree) == ["<$fh>"]


def test_function_call_with_readline_argument_is_not_flagged():
    tree = document(plain(word("process"), WS, paren_list(readline("<$fh>")), semi()))

    assert violations_in(tree) == []


def test_non_plain_statements_are_ignored():
    tree = document(
        node("PPI::Statement::Variable", word("my"), WS, sym("@x"), op("="), word("for"), readline("<$fh>"), semi())
    )

    assert violations_in(tree) == []


def test_locate_candidate_returns_first_significant_child_of_compound():
    tree = document(compound(WS, word("foreach"), paren_list(sym("@a")), block()))
    statement = next(tree.statements())

    candidate = locate_candidate(tree, statement)

    assert tree.content(candidate) == "foreach"


def test_locate_candidate_handles_empty_statements():
    tree = document(compound(), plain(), plain(semi()))

    assert [locate_candidate(tree, statement) for statement in tree.statements()] == [None, None, None]


def test_locate_candidate_rejects_unrecognized_tails():
    tree = document(
        plain(word("print"), sym("$x"), semi()),
        plain(op(">"), semi()),
        plain(word("for"), sym("$fh"), op(">"), semi()),
        plain(sym("$fh"), op(">")),
    )

    assert [locate_candidate(tree, statement) for statement in tree.statements()] == [None, None, None, None]


def test_leading_misparsed_readline_has_no_candidate():
    tree = document(plain(op("<"), sym("$fh"), op(">"), semi()))

    assert violations_in(tree) == []


def test_labelled_loop_is_not_flagged():
    tree = document(compound(tok("Label", "LINE:"), WS, word("foreach"), paren_list(readline("<$fh>")), block()))

    assert violations_in(tree) == []


def test_keyword_match_is_case_sensitive():
    tree = document(compound(word("FOREACH"), paren_list(readline("<$fh>")), block()))

    assert violations_in(tree) == []


def test_broken_my_binding_is_not_flagged():
    tree = document(
        compound(word("foreach"), WS, word("my"), WS, paren_list(readline("<$fh>")), block()),
        compound(word("foreach"), WS, word("my"), WS, sym("$line")),
        plain(word("print"), word("for"), word("my"), readline("<$fh>")),
    )

    assert violations_in(tree) == []


def test_iteration_source_skips_binding_and_comments():
    tree = document(
        compound(
            word("foreach"),
            WS,
            word("my"),
            tok("Comment", "# the line"),
            sym("$line"),
            WS,
            paren_list(readline("<$fh>")),
            block(),
        )
    )
    statement = next(tree.statements())
    keyword = locate_candidate(tree, statement)

    source = iteration_source(tree, keyword)

    assert tree.class_name(source) == "PPI::Structure::List"
    assert [tree.content(offender) for offender in list_offenders(tree, source)] == ["<$fh>"]


def test_list_offenders_includes_the_node_itself():
    tree = document(plain(readline("<$fh>")))
    token = tree.children(next(tree.statements()))[0]

    assert list(list_offenders(tree, token)) == [token]


def test_nested_loops_are_each_checked():
    inner = compound(word("for"), WS, paren_list(readline("<$b>")), block())
    tree = document(compound(word("foreach"), WS, paren_list(sym("@files")), WS, block(inner)))

    assert offender_contents(tree) == ["<$b>"]


def test_repeated_scans_are_identical():
    tree = document(
        compound(word("foreach"), paren_list(readline("<$fh>"), op(","), op("<"), sym("$g"), op(">")), block())
    )

    assert violations_in(tree) == violations_in(tree)


def test_rule_reports_location_and_severity():
    statement = compound(
        tok("Word", "foreach", 4, 1),
        WS,
        paren_list(tok("QuoteLike::Readline", "<$fh>", 4, 10)),
        WS,
        block(),
    )
    tree = document(statement)

    result = run_rule(tree)

    assert result.summary.medium == 1
    assert result.exit_code() == 1
    assert not result.passed
    finding = result.findings[0]
    assert finding.id == "PFH001"
    assert finding.rule == "prohibit_foreach_handle"
    assert finding.path == "t.pl:4:10"
    assert (finding.line, finding.column) == (4, 10)
    assert finding.evidence == "foreach (<$fh>) {}"
    assert finding.recommendation == EXPLANATION


def test_rule_severity_can_be_overridden():
    tree = document(compound(word("foreach"), paren_list(readline("<$fh>")), block()))

    result = run_rule(tree, ProhibitForeachHandleRule(severity=Severity.HIGH))

    assert result.summary.high == 1
    assert result.exit_code() == 2


def test_rule_numbers_findings_across_documents():
    first = document(compound(word("foreach"), paren_list(readline("<$a>")), block()))
    second = document(plain(word("print"), word("for"), readline("<$b>"), semi()))
    result = ScanResult()

    ProhibitForeachHandleRule().scan(ScanContext(documents=[first, second]), result)

    assert [finding.id for finding in result.findings] == ["PFH001", "PFH002"]
    assert all(finding.path == "t.pl" for finding in result.findings)


def test_deeply_nested_loop_source_is_scanned():
    inner = readline("<$fh>")
    for _ in range(5000):
        inner = node("PPI::Structure::List", inner, start="(", finish=")")
    tree = document(compound(word("foreach"), WS, inner, WS, block()))

    result = run_rule(tree)

    assert result.summary.medium == 1
    assert tree.content(result_node(tree)) == "<$fh>"


def result_node(tree):
    (violation,) = violations_in(tree)
    return violation.node
