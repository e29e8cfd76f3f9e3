import logging
import pytest

from easybail.errors import ExecutorFailure, TemplateRenderError
from easybail.services.template_renderer import render_template


def test_replaces_placeholders():
    text = "Bonjour {{tenant_name}}, loyer de {{ rent_amount }} €"
    assert render_template(text, {"tenant_name": "Camille", "rent_amount": "850.00"}) == "Bonjour Camille, loyer de 850.00 €"


def test_empty_values_render_blank():
    assert render_template("[{{tenant_phone}}]", {"tenant_phone": None}) == "[]"
    assert render_template("[{{tenant_phone}}]", {"tenant_phone": ""}) == "[]"


def test_html_is_inserted_verbatim():
    assert render_template("<p>{{landlord_name}}</p>", {"landlord_name": "Dupont & Fils"}) == "<p>Dupont & Fils</p>"


def test_unknown_placeholders_are_kept_and_logged(caplog):
    with caplog.at_level(logging.WARNING):
        rendered = render_template("{{month}} {{unknown}}", {"month": "novembre 2024"})
    assert rendered == "novembre 2024 {{ unknown }}"
    assert "unknown" in caplog.text


def test_no_warning_when_every_variable_is_known(caplog):
    with caplog.at_level(logging.WARNING):
        render_template("{{month}}", {"month": "novembre 2024"})
    assert "without value" not in caplog.text


def test_invalid_syntax_is_an_executor_failure():
    with pytest.raises(TemplateRenderError) as exc_info:
        render_template("Bonjour {{ tenant_name ", {"tenant_name": "Camille"})
    assert isinstance(exc_info.value, ExecutorFailure)
