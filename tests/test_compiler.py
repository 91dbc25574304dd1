"""
End-to-end compilation tests

Tests the full pipeline: template source -> trim -> (minify) -> escape ->
scan/translate -> wrapped function source text.
"""

import pytest
from concurrent.futures import ThreadPoolExecutor

from templatize import compile, Compiler, UnbalancedScopeError
from templatize.config import AppSettings
from templatize.lib.compiler import function_prefix, function_suffix
from templatize.lib.minify import html_minify, minifyKwargs_build, minifyOptions_check
from templatize.models.options import HtmlminOptions


PREFIX = "function(m0){return '"
SUFFIX = "';}"


def wrapped(body: str) -> str:
    return PREFIX + body + SUFFIX


class TestPlainText:
    """Test sources without directive tags"""

    def test_plain_text(self):
        assert compile("<p>Hello</p>") == wrapped("<p>Hello</p>")

    def test_trims_whitespace(self):
        assert compile("  \n <p>Hi</p>\n\t ") == wrapped("<p>Hi</p>")

    def test_empty_source(self):
        assert compile("") == wrapped("")

    def test_escapes_quotes_and_line_breaks(self):
        assert compile("<p class='x'>\r\nit's</p>") == wrapped("<p class=\\'x\\'>\\nit\\'s</p>")

    def test_escaping_is_not_idempotent(self):
        """An already-escaped source is escaped again"""
        assert compile("it\\'s") == wrapped("it\\\\'s")

    def test_prefix_and_suffix(self):
        assert function_prefix(AppSettings()) == PREFIX
        assert function_suffix() == SUFFIX


class TestDirectives:
    """Test each directive kind through compile()"""

    def test_interpolation(self):
        assert compile("Hello {{name}}!") == "function(m0){return 'Hello '+m0.name+'!';}"

    def test_interpolation_with_spaces(self):
        assert compile("{{  user.name  }}") == wrapped("'+m0.user.name+'")

    def test_each(self):
        assert compile("{{#each items}}{{this}}{{/each}}") == wrapped(
            "'+_.map(m0.items, function(m1,k1) { return ''+m1+'';}).join('')+'"
        )

    def test_each_with_markup(self):
        source = "<ul>{{#each items}}<li>{{@key}}: {{name}}</li>{{/each}}</ul>"
        assert compile(source) == wrapped(
            "<ul>'+_.map(m0.items, function(m1,k1) { return '<li>'+k1+': '+m1.name+'</li>';}).join('')+'</ul>"
        )

    def test_hide(self):
        assert compile("{{#hide flag}}secret{{/hide}}") == wrapped("'+(!(m0.flag)?('secret'):(''))+'")

    def test_hide_inside_each_keeps_scope(self):
        source = "{{#each todos}}{{#hide done}}open {{/hide}}{{title}}{{/each}}"
        assert compile(source) == wrapped(
            "'+_.map(m0.todos, function(m1,k1) { return ''+(!(m1.done)?('open '):(''))+''+m1.title+'';}).join('')+'"
        )

    def test_selected_if(self):
        assert compile("<option {{@selectedIf id}}>") == wrapped(
            "<option '+((m0.id==m0.value)?'selected':'')+'>"
        )

    def test_checked_if(self):
        assert compile("<input {{@checkedIf on}}>") == wrapped(
            "<input '+((m0.on==m0.value)?'checked':'')+'>"
        )

    def test_partial(self):
        assert compile("{{> header}}<main></main>") == wrapped("'+p.header(m0)+'<main></main>")

    def test_partial_inside_each(self):
        assert compile("{{#each rows}}{{> row}}{{/each}}") == wrapped(
            "'+_.map(m0.rows, function(m1,k1) { return ''+p.row(m1)+'';}).join('')+'"
        )

    def test_unknown_keyword_falls_back_to_interpolation(self):
        """An unknown keyword compiles like a bare expression of its inner text"""
        assert compile("{{#unless flag}}") == wrapped("'+m0.#unless flag+'")
        assert compile("{{#unless flag}}") == compile("{{ #unless flag }}")

    def test_directive_across_lines(self):
        """Line breaks inside a tag are escaped before scanning"""
        assert compile("{{a\nb}}") == wrapped("'+m0.a\\nb+'")


class TestNestedScopes:
    """Test nesting and parent references"""

    def test_two_parent_markers_at_depth_two(self):
        source = "{{#each a}}{{#each b}}{{../../total}}{{/each}}{{/each}}"
        assert compile(source) == wrapped(
            "'+_.map(m0.a, function(m1,k1) { return ''+_.map(m1.b, function(m2,k2) { return ''"
            "+m0.total+'';}).join('')+'';}).join('')+'"
        )

    def test_parent_this_and_key(self):
        source = "{{#each rows}}{{#each cells}}{{../this}}{{@key}}{{/each}}{{@key}}{{/each}}"
        assert compile(source) == wrapped(
            "'+_.map(m0.rows, function(m1,k1) { return ''+_.map(m1.cells, function(m2,k2) { return ''"
            "+m1+''+k2+'';}).join('')+''+k1+'';}).join('')+'"
        )

    def test_scope_returns_to_top_level(self):
        source = "{{#each a}}{{x}}{{/each}}{{y}}"
        assert compile(source).endswith("'+m0.y+'" + SUFFIX)


class TestUnbalancedScopes:
    """Test clamping and strict mode"""

    def test_unmatched_close_clamps(self):
        assert compile("{{/each}}{{name}}") == wrapped("';}).join('')+''+m0.name+'")

    def test_unmatched_hide_close_clamps(self):
        assert compile("{{/hide}}{{name}}") == wrapped("'):(''))+''+m0.name+'")

    def test_strict_unmatched_close(self):
        with pytest.raises(UnbalancedScopeError):
            compile("{{/each}}", settings=AppSettings(strict_scopes=True))

    def test_strict_unclosed_block(self):
        with pytest.raises(UnbalancedScopeError, match="Unclosed"):
            compile("{{#each items}}x", settings=AppSettings(strict_scopes=True))

    def test_strict_balanced_source(self):
        source = "{{#each a}}{{#hide b}}x{{/hide}}{{/each}}"
        assert compile(source, settings=AppSettings(strict_scopes=True)) == compile(source)


class TestStateIsolation:
    """Test that scope state never leaks between compile calls"""

    def test_unclosed_block_does_not_leak(self):
        compiler = Compiler()
        compiler.compile("{{#each a}}{{#each b}}")
        assert compiler.compile("{{name}}") == wrapped("'+m0.name+'")

    def test_concurrent_compiles(self):
        source = "{{#each a}}{{#each b}}{{../../total}}{{/each}}{{/each}}{{name}}"
        expected = compile(source)
        compiler = Compiler()
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(compiler.compile, [source] * 64))
        assert results == [expected] * 64


class TestMinification:
    """Test the optional minify pre-pass"""

    def test_not_minified_by_default(self):
        calls = []

        def minifier(text, options):
            calls.append(text)
            return text

        compile("<p>\n  a\n</p>", minifier=minifier)
        assert calls == []

    def test_enabled_minifies_with_merged_options(self):
        calls = []

        def minifier(text, options):
            calls.append((text, options))
            return "<p>a</p>"

        result = compile(
            "  <p>\n  a\n</p>  ",
            {"htmlminEnable": True, "htmlmin": {"removeComments": False}},
            minifier=minifier,
        )
        assert result == wrapped("<p>a</p>")
        (text, options), = calls
        assert text == "<p>\n  a\n</p>"
        assert options["removeComments"] is False
        assert options["collapseWhitespace"] is True

    def test_multi_lines_only(self):
        calls = []

        def minifier(text, options):
            calls.append(text)
            return text.replace("\n", "")

        options = {"htmlminMultiLines": True}
        assert compile("<p>one</p>", options, minifier=minifier) == wrapped("<p>one</p>")
        assert compile("<p>\none</p>", options, minifier=minifier) == wrapped("<p>one</p>")
        assert calls == ["<p>\none</p>"]

    def test_minifier_failure_yields_error_body(self):
        def minifier(text, options):
            raise ValueError("broken markup")

        result = compile("{{#each items}}{{this}}{{/each}}", {"htmlminEnable": True}, minifier=minifier)
        assert result == "function(m0){return 'ERROR';}"

    def test_minify_kwargs(self):
        kwargs = minifyKwargs_build(HtmlminOptions().model_dump(by_alias=True))
        assert kwargs["keep_comments"] is False
        assert kwargs["keep_closing_tags"] is True
        assert kwargs["preserve_brace_template_syntax"] is True
        assert "removeComments" not in kwargs

    def test_minify_kwargs_pass_through(self):
        options = HtmlminOptions(remove_comments=False, minify_css=True).model_dump(by_alias=True)
        kwargs = minifyKwargs_build(options)
        assert kwargs["keep_comments"] is True
        assert kwargs["minify_css"] is True

    def test_default_minifier_keeps_tags(self):
        options = HtmlminOptions().model_dump(by_alias=True)
        result = html_minify("<div>\n  <!-- note -->\n  <b>{{name}}</b>\n</div>", options)
        assert "{{name}}" in result
        assert "note" not in result


class TestStages:
    """Test the compile stages individually"""

    def test_fragments_in_source_order(self):
        from templatize.lib.compiler import source_trim, literal_escape, segments_translate
        from templatize.models.state import pipeline

        state = Compiler().state_create("  <b>{{#hide x}}it's{{/hide}}</b> ")
        state = pipeline(state, source_trim, literal_escape, segments_translate)
        assert state.fragments == [
            "<b>",
            "'+(!(m0.x)?('",
            "it\\'s",
            "'):(''))+'",
            "</b>",
        ]
        assert state.tracker.depth == 0

    def test_each_call_gets_its_own_tracker(self):
        compiler = Compiler()
        assert compiler.state_create("a").tracker is not compiler.state_create("a").tracker


def defaults(**overrides):
    options = HtmlminOptions().model_dump(by_alias=True)
    options.update(overrides)
    return options


class TestDefaultMinifier:
    """Test the minify-html backed minifier and its option handling"""

    def test_directive_in_attribute_position(self):
        """Attribute-position tags come back exactly as written"""
        result = html_minify('<input type="checkbox" {{@checkedIf on}}>', defaults())
        assert result == '<input type="checkbox" {{@checkedIf on}}>'

    def test_attribute_quotes_kept_by_default(self):
        result = html_minify('<div class="a b" id="x" title="y">z</div>', defaults())
        assert result == '<div class="a b" id="x" title="y">z</div>'

    def test_boolean_attributes_collapsed(self):
        result = html_minify('<input type="checkbox" checked="checked">', defaults())
        assert result == '<input type="checkbox" checked>'

    def test_boolean_attributes_kept_when_asked(self):
        result = html_minify('<input type="checkbox" checked="checked">', defaults(collapseBooleanAttributes=False))
        assert result == '<input type="checkbox" checked="checked">'

    def test_attribute_rewriting_when_all_enabled(self):
        options = defaults(removeAttributeQuotes=True, removeRedundantAttributes=True, removeEmptyAttributes=True)
        assert html_minify('<div id="x">a</div>', options) == "<div id=x>a</div>"

    def test_cdata_comments_removed(self):
        result = html_minify("<script><!--\nvar a = 1;\n--></script>", defaults())
        assert "<!--" not in result
        assert "-->" not in result
        assert "var a = 1;" in result

    def test_mixed_attribute_options_rejected(self):
        with pytest.raises(ValueError, match="cannot honor"):
            html_minify("<p>x</p>", defaults(removeAttributeQuotes=True))

    def test_whitespace_option_rejected(self):
        with pytest.raises(ValueError, match="collapseWhitespace"):
            minifyOptions_check(defaults(collapseWhitespace=False))

    def test_boolean_option_rejected_when_rewriting(self):
        options = defaults(
            removeAttributeQuotes=True,
            removeRedundantAttributes=True,
            removeEmptyAttributes=True,
            collapseBooleanAttributes=False,
        )
        with pytest.raises(ValueError, match="collapseBooleanAttributes"):
            minifyOptions_check(options)

    def test_defaults_accepted(self):
        minifyOptions_check(defaults())


class TestCompileWithMinification:
    """Test whole compiles with the minification pre-pass enabled"""

    def test_checked_if_in_attribute_position(self):
        source = '<label>\n  <input type="checkbox" {{@checkedIf on}}>\n  {{name}}\n</label>'
        result = compile(source, {"htmlminEnable": True})
        assert result.startswith(PREFIX)
        assert result.endswith(SUFFIX)
        assert "<input type=\"checkbox\" '+((m0.on==m0.value)?'checked':'')+'>" in result
        assert "'+m0.name+'" in result
        assert "\\n" not in result

    def test_selected_if_inside_each(self):
        source = '<select>\n  {{#each options}}<option value="{{id}}" {{@selectedIf ../choice}}>{{label}}</option>{{/each}}\n</select>'
        result = compile(source, {"htmlminEnable": True})
        assert (
            "'+_.map(m0.options, function(m1,k1) { return '<option value=\"'+m1.id+'\" "
            "'+((m0.choice==m1.value)?'selected':'')+'>'+m1.label+'</option>';}).join('')+'"
        ) in result

    def test_each_block_survives(self):
        source = '<ul>\n  {{#each items}}<li class="item">{{this}}</li>{{/each}}\n</ul>'
        result = compile(source, {"htmlminEnable": True})
        assert "'+_.map(m0.items, function(m1,k1) { return '<li class=\"item\">'+m1+'</li>';}).join('')+'" in result

    def test_unsupported_options_yield_error_body(self):
        result = compile("<p>x</p>", {"htmlminEnable": True, "htmlmin": {"removeAttributeQuotes": True}})
        assert result == "function(m0){return 'ERROR';}"

    def test_minifier_never_sees_directive_tags(self):
        seen = []

        def minifier(text, options):
            seen.append(text)
            return text.lower()

        result = compile('<P CLASS="X" {{@checkedIf On}}>{{Name}}</P>', {"htmlminEnable": True}, minifier=minifier)
        assert "{{" not in seen[0]
        assert result == wrapped("<p class=\"x\" '+((m0.On==m0.value)?'checked':'')+'>'+m0.Name+'</p>")
