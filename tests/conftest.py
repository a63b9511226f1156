from pathlib import Path

import pytest

from stencil import Engine, FileSystemLoader

# Импорт из унифицированной инфраструктуры
from tests.infrastructure.file_utils import write_templates
from tests.infrastructure.rendering_utils import make_engine


@pytest.fixture
def engine() -> Engine:
    """Движок без загрузчика шаблонов и с настройками по умолчанию."""
    return make_engine()


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Каталог с небольшим сайтом: базовый макет, страница, макросы и фрагмент."""
    return write_templates(tmp_path / "templates", {
        "base.html": (
            "<title>{% block title %}Site{% endblock %}</title>\n"
            "{% block body %}{% endblock %}"
        ),
        "page.html": (
            '{% extends "base.html" %}'
            '{% import "forms.html" as forms %}'
            "{% block title %}{{ title }} - {{ parent() }}{% endblock %}"
            '{% block body %}{{ forms.field("q") }}{% include "footer.html" %}{% endblock %}'
        ),
        "forms.html": '{% macro field(name, kind="text") %}<input name="{{ name }}" type="{{ kind }}">{% endmacro %}',
        "footer.html": "<footer>{{ title|upper }}</footer>",
        "broken.html": "{% if x %}never closed",
    })


@pytest.fixture
def fs_engine(template_dir: Path) -> Engine:
    return Engine(loader=FileSystemLoader(template_dir))
