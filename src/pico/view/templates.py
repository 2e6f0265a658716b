"""Built-in kida templates for view entities.

Loaded through a ``DictLoader``; values are escaped by autoescape, and
pre-rendered HTML is passed in as ``Markup``.
"""

LAYOUT = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }}</title>
{% if htmx_src %}<script src="{{ htmx_src }}"></script>
{% end %}</head>
<body>
<main id="pico-main">
{{ body }}
</main>
</body>
</html>
"""

LINKS = """\
<nav class="pico-links">
<ul>
{% for link in links %}<li><a href="{{ link.href }}">{{ link.text }}</a></li>
{% end %}</ul>
</nav>
"""

FORM = """\
<form class="pico-form" action="{{ form.action }}" method="{{ form.method }}" \
hx-{{ form.method }}="{{ form.action }}" hx-target="#pico-main">
{% if form.title %}<h2>{{ form.title }}</h2>
{% end %}{% for field in form.fields %}<div class="pico-field">
{% if field.label %}<label for="{{ field.id }}">{{ field.label }}</label>
{% end %}{% if field.control == "submit" %}<button type="submit" id="{{ field.id }}" \
name="{{ field.id }}">{{ field.caption }}</button>
{% end %}{% if field.control == "textarea" %}<textarea id="{{ field.id }}" \
name="{{ field.id }}">{{ field.value }}</textarea>
{% end %}{% if field.control == "input" %}<input type="{{ field.type }}" id="{{ field.id }}" \
name="{{ field.id }}"{% if field.has_value %} value="{{ field.value }}"{% end %}>
{% end %}</div>
{% end %}</form>
"""

MARKDOWN = """\
<article class="pico-markdown">
{{ html }}
</article>
"""

OBJECT = """\
<section class="pico-object">
{% if title %}<h2>{{ title }}</h2>
{% end %}{{ body }}
</section>
"""

TABLE = """\
<table class="pico-table">
{% if title %}<caption>{{ title }}</caption>
{% end %}<thead>
<tr>{% for column in columns %}<th>{{ column }}</th>{% end %}</tr>
</thead>
<tbody>
{% for row in rows %}<tr>{% for cell in row %}<td>{{ cell }}</td>{% end %}</tr>
{% end %}</tbody>
</table>
"""

TEMPLATES = {
    "layout.html": LAYOUT,
    "links.html": LINKS,
    "form.html": FORM,
    "markdown.html": MARKDOWN,
    "object.html": OBJECT,
    "table.html": TABLE,
}
