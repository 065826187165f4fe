from functools import partial

from sitedrop.services.css import rewrite_urls
from sitedrop.services.rewriter import resolve_reference

BASE = "https://store/x/"
resolve = partial(resolve_reference, asset_base=BASE)


def test_unquoted_url_becomes_single_quoted():
    css = "@font-face { src: url(fonts/a.woff2); }"
    assert rewrite_urls(css, resolve) == "@font-face { src: url('https://store/x/fonts/a.woff2'); }"


def test_quote_style_is_kept():
    assert rewrite_urls('a{background:url("img/b.png")}', resolve) == 'a{background:url("https://store/x/img/b.png")}'
    assert rewrite_urls("a{background:url('img/b.png')}", resolve) == "a{background:url('https://store/x/img/b.png')}"


def test_leading_dot_slash_and_slash_are_stripped_once():
    assert rewrite_urls("url(./a.png)", resolve) == "url('https://store/x/a.png')"
    assert rewrite_urls("url(/a.png)", resolve) == "url('https://store/x/a.png')"
    assert rewrite_urls("url(../a.png)", resolve) == "url('https://store/x/../a.png')"


def test_absolute_and_data_urls_untouched():
    css = "a{b:url(https://cdn.example/x.png);c:url(//cdn.example/y.png);d:url(data:image/png;base64,AA==)}"
    assert rewrite_urls(css, resolve) == css


def test_fragment_and_empty_urls_untouched():
    css = "rect{fill:url(#grad)} i{background:url()}"
    assert rewrite_urls(css, resolve) == css


def test_comments_and_strings_are_skipped():
    css = '/* url(old.png) */ a::after { content: "url(not-a-url.png)"; }'
    assert rewrite_urls(css, resolve) == css


def test_escaped_quote_inside_url():
    css = "a{background:url('it\\'s.png')}"
    assert rewrite_urls(css, resolve) == "a{background:url('https://store/x/it\\'s.png')}"


def test_whitespace_inside_parens():
    assert rewrite_urls("url(  a.png  )", resolve) == "url('https://store/x/a.png')"


def test_case_insensitive_function_name():
    assert rewrite_urls("URL(a.png)", resolve) == "url('https://store/x/a.png')"


def test_other_functions_ending_in_url_untouched():
    css = "a{b:my-url(a.png)}"
    assert rewrite_urls(css, resolve) == css


def test_import_string_and_url_forms():
    css = '@import "reset.css";\n@import url(theme.css) screen;'
    assert rewrite_urls(css, resolve) == (
        '@import "https://store/x/reset.css";\n@import url(\'https://store/x/theme.css\') screen;'
    )


def test_unterminated_url_left_alone():
    css = "a{background:url(a.png"
    assert rewrite_urls(css, resolve) == css


def test_query_and_fragment_preserved():
    assert rewrite_urls("url(font.woff?v=2#iefix)", resolve) == "url('https://store/x/font.woff?v=2#iefix')"
