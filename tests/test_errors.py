"""
Render error tests

Tests how failures inside template code are reported, with and without
compile_debug.
"""

import asyncio

import pytest

import embedpy
from embedpy.lib.errors import TemplateRenderError, context_format, rethrow


TEMPLATE = "line 1\nline 2\n<%= missing %>\nline 4\nline 5\nline 6\nline 7\nline 8"


class TestContextFormat:
    """Test the numbered excerpt around a failing line"""

    def test_marks_failing_line(self):
        """The failing line is marked, its neighbours are not"""
        excerpt = context_format("a\nb\nc", 2)
        assert excerpt == "    1| a\n >> 2| b\n    3| c"

    def test_three_lines_each_side(self):
        """At most three lines either side are shown"""
        source = "\n".join(f"l{n}" for n in range(1, 21))
        lines = context_format(source, 10).split("\n")

        assert lines[0] == "    7| l7"
        assert lines[-1] == "    13| l13"
        assert len(lines) == 7

    def test_clamped_at_start(self):
        """The excerpt does not run before the first line"""
        lines = context_format("a\nb\nc\nd\ne\nf", 1).split("\n")
        assert lines[0] == " >> 1| a"
        assert len(lines) == 4


class TestRethrow:
    """Test rewriting of exceptions"""

    def test_same_exception_rewritten(self):
        """The original exception object is re-raised with context"""
        original = RuntimeError("boom")
        with pytest.raises(RuntimeError) as error:
            rethrow(original, "a\nb", "x<y>.ept", 2, embedpy.escape_xml)

        assert error.value is original
        assert error.value.path == "x&lt;y&gt;.ept"
        assert str(error.value).startswith("x&lt;y&gt;.ept:2\n")

    def test_key_error_message_readable(self):
        """KeyError context is shown as plain text, not as a repr"""
        original = KeyError("k")
        with pytest.raises(KeyError) as error:
            rethrow(original, "a\nb", None, 2, embedpy.escape_xml)

        assert isinstance(error.value, TemplateRenderError)
        assert str(error.value) == "template:2\n    1| a\n >> 2| b\n\n'k'"
        assert error.value.__cause__ is original
        assert original.args == ("k",)

    def test_os_error_message_readable(self):
        """OSError context is shown despite errno formatting"""
        original = FileNotFoundError(2, "No such file or directory", "/nope")
        with pytest.raises(FileNotFoundError) as error:
            rethrow(original, "a", "page.ept", 1, embedpy.escape_xml)

        assert str(error.value).startswith("page.ept:1\n >> 1| a\n\n")
        assert str(error.value).endswith("No such file or directory: '/nope'")
        assert error.value.path == "page.ept"

    def test_without_filename(self):
        """Without a filename the message starts with 'template'"""
        with pytest.raises(ValueError) as error:
            rethrow(ValueError("bad"), "a", None, 1, embedpy.escape_xml)

        assert str(error.value) == "template:1\n >> 1| a\n\nbad"
        assert error.value.path is None


class TestRenderErrors:
    """Test errors raised while rendering"""

    def test_context_added(self):
        """compile_debug errors show the template lines around the failure"""
        with pytest.raises(NameError) as error:
            asyncio.run(embedpy.render(TEMPLATE))

        message = str(error.value)
        assert message.startswith("template:3\n")
        assert " >> 3| <%= missing %>" in message
        assert "    6| line 6" in message
        assert "line 7" not in message
        assert message.endswith("name 'missing' is not defined")

    def test_filename_in_message(self, tmp_path):
        """The template filename is reported and attached as path"""
        filename = str(tmp_path / "broken.ept")
        with pytest.raises(NameError) as error:
            asyncio.run(embedpy.render(TEMPLATE, options={"filename": filename}))

        assert str(error.value).startswith(f"{filename}:3\n")
        assert error.value.path == filename

    def test_line_inside_block(self):
        """The reported line follows execution into blocks"""
        text = "<% for i in items: %>\n<%= i.upper() %>\n<% end %>"
        with pytest.raises(AttributeError) as error:
            asyncio.run(embedpy.render(text, {"items": [1]}))

        assert str(error.value).startswith("template:2\n")

    def test_key_error_in_template(self):
        """A missing dictionary key reports the template line readably"""
        with pytest.raises(KeyError) as error:
            asyncio.run(embedpy.render("<%= d['x'] %>", {"d": {}}))

        assert str(error.value) == "template:1\n >> 1| <%= d['x'] %>\n\n'x'"

    def test_open_failure_in_template(self):
        """An OSError raised by template code keeps the added context"""
        with pytest.raises(FileNotFoundError) as error:
            asyncio.run(embedpy.render("<% open('/nonexistent/dir/x') %>"))

        message = str(error.value)
        assert message.startswith("template:1\n >> 1| <% open('/nonexistent/dir/x') %>\n\n")
        assert "No such file or directory" in message
        assert error.value.path is None

    def test_without_compile_debug(self):
        """Without compile_debug the original error is untouched"""
        with pytest.raises(NameError) as error:
            asyncio.run(embedpy.render(TEMPLATE, options={"compile_debug": False}))

        assert str(error.value) == "name 'missing' is not defined"
        assert not hasattr(error.value, "path")

    def test_without_compile_debug_no_tracking(self):
        """Without compile_debug no line bookkeeping is generated"""
        template = embedpy.compile(TEMPLATE, {"compile_debug": False})
        assert "__line" not in template.source
