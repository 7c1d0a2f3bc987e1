"""
End-to-end render tests

Tests the full pipeline: template text → Lexer → Parser → compiled
render function → output text.
"""

import asyncio

import pytest

import embedpy
from embedpy import Options, TemplateNameError, TemplateSyntaxError
from embedpy.lib.escape import escape_xml


def render(text, data=None, **options):
    return asyncio.run(embedpy.render(text, data, options))


class TestTags:
    """Test each tag kind"""

    def test_no_tags(self):
        """Text without tags renders unchanged"""
        text = "<html>\n  <body>plain & simple</body>\n</html>\n"
        assert render(text) == text

    def test_empty(self):
        """Empty template renders empty"""
        assert render("") == ""

    def test_escaped_output(self):
        """<%= %> outputs through the escape function"""
        assert render("<p><%= name %></p>", {"name": "geddy"}) == "<p>geddy</p>"
        assert render("<p><%= name %></p>", {"name": "<b>"}) == "<p>&lt;b&gt;</p>"

    def test_raw_output(self):
        """<%- %> outputs without escaping"""
        assert render("<p><%- name %></p>", {"name": "<b>"}) == "<p><b></p>"

    def test_comment(self):
        """<%# %> renders nothing"""
        assert render("<%# anything %>") == ""

    def test_literal_escapes(self):
        """<%% and %%> render the bare markers"""
        assert render("<%%") == "<%"
        assert render("<%% x %>") == "<% x %>"
        assert render("a %%> b") == "a %> b"

    def test_none_and_zero(self):
        """None renders empty, 0 renders as 0"""
        assert render("[<%= v %>]", {"v": None}) == "[]"
        assert render("[<%- v %>]", {"v": None}) == "[]"
        assert render("[<%= v %>]", {"v": 0}) == "[0]"

    def test_statements(self):
        """Eval tags run statements whose names later tags can use"""
        text = "<%\n  total = 0\n  for n in nums:\n      total += n\n%><%= total %>"
        assert render(text, {"nums": [1, 2, 3]}) == "6"

    def test_trailing_line_comment(self):
        """A trailing # comment in an output tag does not swallow the tag"""
        assert render("<%= name # who %>!", {"name": "geddy"}) == "geddy!"

    def test_trailing_comment_ending_in_colon(self):
        """A colon inside a trailing comment does not open a block"""
        assert render("<% x = 1  # note: %>[<%= x %>]") == "[1]"

    def test_reassigned_data_name(self):
        """Template code may assign to a name that also comes from data"""
        assert render("<% name = name.upper() %><%= name %>", {"name": "a"}) == "A"

    def test_reassigned_name_without_data(self):
        """An assigned name missing from data behaves as a plain local"""
        assert render("<% total = 2 %><% total += 1 %><%= total %>") == "3"

    def test_builtins_not_replaced_by_data(self):
        """A data key named __builtins__ does not hide the builtins"""
        assert render("<%= len(items) %>", {"items": [1, 2], "__builtins__": {}}) == "2"


class TestBlocks:
    """Test Python blocks around template text"""

    def test_for_loop(self):
        """Text inside a for block repeats"""
        text = "<% for i in items: %>[<%= i %>]<% end %>"
        assert render(text, {"items": ["a", "b"]}) == "[a][b]"

    def test_if_elif_else(self):
        """Only the matching branch renders"""
        text = "<% if n > 1: %>many<% elif n == 1: %>one<% else: %>none<% end %>"
        assert render(text, {"n": 5}) == "many"
        assert render(text, {"n": 1}) == "one"
        assert render(text, {"n": 0}) == "none"

    def test_try_except(self):
        """Exceptions can be handled inside the template"""
        text = "<% try: %><%= 1 / 0 %><% except ZeroDivisionError: %>div<% end %>"
        assert render(text) == "div"

    def test_await(self):
        """Template code may await"""
        text = "<% import asyncio %><% await asyncio.sleep(0) %>done"
        assert render(text) == "done"


class TestWhitespace:
    """Test trim, slurp and whitespace removal"""

    def test_trim_tags(self):
        """-%> removes the line break after the tag"""
        text = "<ul><% -%>\n<% for i in items: -%>\n<li><%= i -%></li>\n<% end -%>\n</ul><% -%>\n"
        result = render(text, {"items": ["a", "b", "c"]})
        assert result == "<ul><li>a</li>\n<li>b</li>\n<li>c</li>\n</ul>"

    def test_trim_tags_list_end(self):
        """A list closed right after the trimmed end tag has no blank lines"""
        text = "<ul><% -%>\n<% for i in items: -%>\n<li><%= i -%></li>\n<% end -%>\n</ul>"
        result = render(text, {"items": ["a", "b", "c"]})
        assert result == "<ul><li>a</li>\n<li>b</li>\n<li>c</li>\n</ul>"

    def test_trim_windows_newlines(self):
        """-%> removes a CRLF line break"""
        assert render("<% x = 1 -%>\r\nA\r\n") == "A\r\n"

    def test_slurp_tags(self):
        """<%_ and _%> remove horizontal whitespace around the tag"""
        assert render("  <%_ x = 1 _%>  \nA") == "A"

    def test_rm_whitespace(self):
        """rm_whitespace strips every line"""
        assert render("  <p>\n    <%= a %>\n  </p>\n", {"a": 1}, rm_whitespace=True) == "<p>\n1\n</p>"


class TestOptions:
    """Test compile options"""

    def test_custom_delimiters(self):
        """[# #] behaves like <% %>"""
        result = render(
            "[#= name #] <%= name %>",
            {"name": "geddy"},
            open_delimiter="[",
            close_delimiter="]",
            delimiter="#",
        )
        assert result == "geddy <%= name %>"

    def test_custom_escape(self):
        """escape replaces the function used by <%= %>"""
        assert render("<%= s %>", {"s": "abc"}, escape=str.upper) == "ABC"

    def test_output_function_name(self):
        """output_function_name binds the append helper"""
        assert render("<% echo('hi') %>!", output_function_name="echo") == "hi!"

    def test_locals_name(self):
        """The data context is available through locals_name"""
        assert render("<%= locals['n'] %>", {"n": 1}) == "1"
        assert render("<%= data['n'] %>", {"n": 2}, locals_name="data") == "2"

    def test_invalid_output_function_name(self):
        """A non-identifier output_function_name is rejected"""
        with pytest.raises(TemplateNameError) as error:
            embedpy.compile("x", {"output_function_name": "not valid"})
        assert error.value.option == "output_function_name"
        assert "is not a valid Python identifier" in str(error.value)

    def test_keyword_locals_name(self):
        """A keyword cannot be the locals name"""
        with pytest.raises(TemplateNameError) as error:
            embedpy.compile("x", {"locals_name": "class"})
        assert error.value.option == "locals_name"

    def test_unknown_option(self):
        """Unknown option names are rejected"""
        with pytest.raises(TypeError, match="no_such_option"):
            embedpy.compile("x", {"no_such_option": True})

    def test_options_record(self):
        """An Options instance is accepted and not modified"""
        options = Options(locals_name="ctx")
        template = embedpy.compile("<%= ctx['a'] %>", options)

        assert asyncio.run(template({"a": "b"})) == "b"
        assert template.options is not options


class TestCompiledTemplate:
    """Test the compiled template object"""

    def test_reusable(self):
        """A compiled template renders repeatedly with different data"""
        template = embedpy.compile("<%= name %>")
        assert asyncio.run(template({"name": "a"})) == "a"
        assert asyncio.run(template({"name": "b"})) == "b"

    def test_concurrent_calls(self):
        """Concurrent renders of one template do not share output"""
        template = embedpy.compile(
            "<% import asyncio %><% for i in range(3): %><%= tag %><% await asyncio.sleep(0) %><% end %>"
        )

        async def both():
            return await asyncio.gather(template({"tag": "a"}), template({"tag": "b"}))

        assert asyncio.run(both()) == ["aaa", "bbb"]

    def test_name(self):
        """The template name comes from the filename"""
        assert embedpy.compile("x").name == "anonymous"
        assert embedpy.compile("x", {"filename": "/site/page.ept"}).name == "page"

    def test_source_exposed(self):
        """The generated source is kept for inspection"""
        template = embedpy.compile("<p>hi</p>")
        assert template.source.startswith("async def __render(locals, escape_fn, include, rethrow):")
        assert "__append('<p>hi</p>')" in template.source

    def test_debug_dump(self, capsys):
        """debug prints the generated source to stderr"""
        embedpy.compile("<p>hi</p>", {"debug": True})
        assert "__append('<p>hi</p>')" in capsys.readouterr().err

    def test_python_syntax_error(self):
        """Invalid embedded Python names the template and suggests a linter"""
        with pytest.raises(SyntaxError) as error:
            embedpy.compile("<% x = = 1 %>", {"filename": "broken.ept"})
        assert "broken.ept" in error.value.msg
        assert "while compiling template" in error.value.msg
        assert "pyflakes" in error.value.msg

    def test_syntax_error_from_tags(self):
        """Malformed tags fail at compile time"""
        with pytest.raises(TemplateSyntaxError):
            embedpy.compile("<h1>oops</h1><%- name ->")


class TestEscapeXml:
    """Test the default escape function"""

    def test_entities(self):
        """The five markup characters become entities"""
        assert escape_xml("&<>'\"") == "&amp;&lt;&gt;&#x27;&quot;"

    def test_none(self):
        """None escapes to the empty string"""
        assert escape_xml(None) == ""

    def test_numbers(self):
        """Numbers are stringified"""
        assert escape_xml(0) == "0"
        assert escape_xml(1.5) == "1.5"
