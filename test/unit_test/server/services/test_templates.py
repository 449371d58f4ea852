"""
Unit tests for email template rendering.
"""

import pytest
from jinja2 import TemplateError, TemplateSyntaxError, UndefinedError

from approv.core.database.entities.email_templates import EmailTemplate
from approv.server.services.email import Branding
from approv.server.services.templates import (
    DEFAULT_TEMPLATES,
    TemplateContent,
    get_default_template,
    render,
    render_email,
    render_template,
    resolve_template,
)


class TestRender:
    def test_substitutes_placeholders(self):
        assert render("Hello {{name}}, see {{ url }}", {"name": "John", "url": "x"}) == "Hello John, see x"

    def test_unknown_placeholders_render_empty(self):
        assert render("Hi {{missing}}!", {}) == "Hi !"

    def test_values_are_escaped(self):
        assert render("{{notes}}", {"notes": "<b>Tom & Jerry</b>"}) == "&lt;b&gt;Tom &amp; Jerry&lt;/b&gt;"

    def test_escaping_can_be_disabled(self):
        assert render("{{notes}}", {"notes": "Tom & Jerry"}, escape=False) == "Tom & Jerry"

    def test_non_string_values(self):
        assert render("{{days}} days", {"days": 7}) == "7 days"

    def test_none_renders_empty(self):
        assert render("Hi {{name}}!", {"name": None}) == "Hi !"

    def test_filters_and_conditionals(self):
        template = "{% if urgent %}URGENT {% endif %}{{ name | upper }}"
        assert render(template, {"urgent": True, "name": "hartley"}) == "URGENT HARTLEY"

    def test_trailing_newline_is_kept(self):
        assert render("Thanks, {{name}}\n", {"name": "Sarah"}, escape=False) == "Thanks, Sarah\n"

    def test_stored_templates_cannot_reach_python_internals(self):
        with pytest.raises(TemplateError):
            render("{{ ''.__class__.__mro__[1].__subclasses__() }}", {})

    def test_syntax_error(self):
        with pytest.raises(TemplateSyntaxError):
            render("Hello {{ name", {"name": "John"})


def test_render_template_escapes_html_only():
    template = TemplateContent(
        name="t", slug="t", subject="{{projectName}}", body_html="<p>{{projectName}}</p>", body_text="{{projectName}}"
    )
    subject, body_html, body_text = render_template(template, {"projectName": "Smith & Sons"})
    assert subject == "Smith & Sons"
    assert body_html == "<p>Smith &amp; Sons</p>"
    assert body_text == "Smith & Sons"


@pytest.mark.parametrize("slug", ["approval_request", "approval_reminder", "approval_confirmation"])
def test_default_templates_exist(slug):
    template = get_default_template(slug)
    assert template is not None
    assert template.slug == slug
    assert "{{projectName}}" in template.subject


def test_request_subject():
    subject, body_html, _ = render_template(
        DEFAULT_TEMPLATES["approval_request"],
        {"projectName": "Hartley Road", "stageName": "Initial Drawings", "approvalUrl": "http://app/approve/c1"},
    )
    assert subject == "Approval Required: Hartley Road - Initial Drawings"
    assert 'href="http://app/approve/c1"' in body_html


class TestResolveTemplate:
    async def test_falls_back_to_builtin(self, repos, organization):
        template = await resolve_template(repos.email_templates, organization.id, "approval_reminder")
        assert template == DEFAULT_TEMPLATES["approval_reminder"]

    async def test_prefers_active_custom_template(self, repos, organization):
        await repos.email_templates.create(
            EmailTemplate(
                organization_id=organization.id,
                name="Our reminder",
                slug="approval_reminder",
                subject="Gentle nudge: {{projectName}}",
                body_html="<p>{{clientName}}</p>",
                is_custom=True,
            )
        )
        template = await resolve_template(repos.email_templates, organization.id, "approval_reminder")
        assert template.subject == "Gentle nudge: {{projectName}}"
        assert template.body_text is None

    async def test_unknown_slug(self, repos, organization):
        assert await resolve_template(repos.email_templates, organization.id, "weekly_digest") is None


class TestRenderEmail:
    """Test the layouts for the emails the service composes itself."""

    def test_html_is_escaped_and_wrapped(self):
        body = render_email(
            "approval_confirmation.html",
            branding=Branding(name="Smith & Co", primary_color="#123456"),
            client_name="John <Smith>",
            project_name="Hartley Road",
            stage_label="Initial Drawings",
            outcome="Thank you for approving",
        )

        assert body.startswith('<div style="font-family: Arial')
        assert '<h2 style="color: #123456;">Smith &amp; Co</h2>' in body
        assert "Dear John &lt;Smith&gt;," in body
        assert "Sent with Approv" in body

    def test_footer_text_replaces_default(self):
        body = render_email(
            "team_notification.html",
            branding=Branding(name="Hartley Architects", footer_text="Hartley Architects, Bath"),
            client_name="John Smith",
            project_name="Hartley Road",
            stage_label="Initial Drawings",
            verb="approved",
            notes=None,
            project_url="http://localhost:5173/projects/p1",
        )

        assert "Hartley Architects, Bath" in body
        assert "Sent with Approv" not in body
        assert "<blockquote>" not in body
        assert 'href="http://localhost:5173/projects/p1"' in body

    def test_text_is_not_escaped(self):
        body = render_email(
            "approval_request.txt",
            client_name="Smith & Sons",
            project_name="Hartley Road",
            stage_label="Initial Drawings",
            approval_url="http://localhost:5173/approve/c1",
            expires_on="24 March 2026",
        )

        assert body.startswith("Dear Smith & Sons,")
        assert body.endswith("This link expires on 24 March 2026.\n")

    def test_missing_variable_fails(self):
        with pytest.raises(UndefinedError):
            render_email("approval_request.txt", client_name="John")
