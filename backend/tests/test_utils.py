from sitebuilder.utils import extract_json_object, strip_code_fence


def test_extracts_first_balanced_object():
    text = 'noise {"a": {"b": 1}} trailing {"c": 2}'
    assert extract_json_object(text) == '{"a": {"b": 1}}'


def test_braces_and_escaped_quotes_inside_strings_are_inert():
    text = r'{"footerText": "Say \"hi\" {here}"} after'
    assert extract_json_object(text) == r'{"footerText": "Say \"hi\" {here}"}'


def test_single_quoted_strings_are_inert_too():
    text = "{'a': '}'} rest"
    assert extract_json_object(text) == "{'a': '}'}"


def test_backslash_outside_string_is_not_an_escape():
    assert extract_json_object('{"a": 1} \\}') == '{"a": 1}'


def test_start_offset():
    text = '{"first": 1} {"second": 2}'
    assert extract_json_object(text, start=1) == '{"second": 2}'


def test_unbalanced_object_gives_empty_string():
    assert extract_json_object('{"a": {"b": 1}') == ""
    assert extract_json_object('{"a": "never closed}') == ""


def test_no_brace_gives_empty_string():
    assert extract_json_object("just words") == ""
    assert extract_json_object("") == ""


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  ```\n{"a": 1}```  ') == '{"a": 1}'
    assert strip_code_fence('{"a": 1}') == '{"a": 1}'
