"""
Email templates.

Built-in templates for the transactional emails, and the Jinja2 environments
that render them together with organization-specific overrides.

Organization templates are stored content, so every template is compiled in a
sandboxed environment. HTML bodies autoescape their values; subjects and
plain-text bodies do not.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from jinja2 import BaseLoader, DictLoader, StrictUndefined, select_autoescape
from jinja2.sandbox import SandboxedEnvironment


def _blank_none(value: Any) -> Any:
    return "" if value is None else value


def _environment(autoescape: bool) -> SandboxedEnvironment:
    return SandboxedEnvironment(
        loader=BaseLoader(), autoescape=autoescape, finalize=_blank_none, keep_trailing_newline=True
    )


html_env = _environment(autoescape=True)
text_env = _environment(autoescape=False)


@dataclass(frozen=True)
class TemplateContent:
    name: str
    slug: str
    subject: str
    body_html: str
    body_text: Optional[str] = None


def render(template: str, data: Mapping[str, Any], escape: bool = True) -> str:
    """Render a ``{{name}}`` template with values from ``data``.

    Unknown variables render as an empty string. Values are HTML-escaped
    unless ``escape`` is False (plain-text bodies and subjects).

    Raises:
        jinja2.TemplateError: When the template does not compile
    """
    env = html_env if escape else text_env
    return env.from_string(template).render(**data)


def render_template(template: TemplateContent, data: Mapping[str, Any]) -> tuple[str, str, Optional[str]]:
    """Render subject, HTML body and text body."""
    subject = render(template.subject, data, escape=False)
    body_html = render(template.body_html, data)
    body_text = render(template.body_text, data, escape=False) if template.body_text else None
    return subject, body_html, body_text


_LAYOUT_START = (
    '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #1f2933;">'
    '<h2 style="color: {{primaryColor}};">{{organizationName}}</h2>'
)
_LAYOUT_END = '<p style="color: #7b8794; font-size: 12px;">{{footerText}}</p></div>'

DEFAULT_TEMPLATES: dict[str, TemplateContent] = {
    "approval_request": TemplateContent(
        name="Approval Request",
        slug="approval_request",
        subject="Approval Required: {{projectName}} - {{stageName}}",
        body_html=(
            _LAYOUT_START
            + "<p>Dear {{clientName}},</p>"
            + "<p>We have prepared the <strong>{{stageName}}</strong> for <strong>{{projectName}}</strong> "
            + "and would appreciate your review.</p>"
            + '<p><a href="{{approvalUrl}}" style="background: {{primaryColor}}; color: #fff; padding: 12px 24px; '
            + 'text-decoration: none; border-radius: 4px;">Review and respond</a></p>'
            + "<p>This link expires on {{expiresAt}}.</p>"
            + _LAYOUT_END
        ),
        body_text=(
            "Dear {{clientName}},\n\nThe {{stageName}} for {{projectName}} is ready for your review.\n"
            "Review and respond: {{approvalUrl}}\n\nThis link expires on {{expiresAt}}.\n"
        ),
    ),
    "approval_reminder": TemplateContent(
        name="Approval Reminder",
        slug="approval_reminder",
        subject="Reminder: Approval Needed for {{projectName}}",
        body_html=(
            _LAYOUT_START
            + "<p>Dear {{clientName}},</p>"
            + "<p>The <strong>{{stageName}}</strong> for <strong>{{projectName}}</strong> has been awaiting "
            + "your review for {{daysPending}} days.</p>"
            + '<p><a href="{{approvalUrl}}">Review and respond</a></p>'
            + "<p>This link expires on {{expiresAt}}.</p>"
            + _LAYOUT_END
        ),
        body_text=(
            "Dear {{clientName}},\n\nThe {{stageName}} for {{projectName}} has been awaiting your review "
            "for {{daysPending}} days.\nReview and respond: {{approvalUrl}}\n"
        ),
    ),
    "approval_confirmation": TemplateContent(
        name="Approval Confirmation",
        slug="approval_confirmation",
        subject="Approval Received: {{projectName}} - {{stageName}}",
        body_html=(
            _LAYOUT_START
            + "<p>Dear {{clientName}},</p>"
            + "<p>Thank you. We have recorded your response to the <strong>{{stageName}}</strong> for "
            + "<strong>{{projectName}}</strong>: {{statusLabel}}.</p>"
            + _LAYOUT_END
        ),
        body_text=(
            "Dear {{clientName}},\n\nThank you. We have recorded your response to the {{stageName}} for "
            "{{projectName}}: {{statusLabel}}.\n"
        ),
    ),
}


def get_default_template(slug: str) -> Optional[TemplateContent]:
    return DEFAULT_TEMPLATES.get(slug)


async def resolve_template(repo, organization_id: str, slug: str) -> Optional[TemplateContent]:
    """The organization's active template for ``slug``, falling back to the built-in one."""
    custom = await repo.get_active(organization_id, slug)
    if custom is not None:
        return TemplateContent(
            name=custom.name,
            slug=custom.slug,
            subject=custom.subject,
            body_html=custom.body_html,
            body_text=custom.body_text,
        )
    return get_default_template(slug)


# Emails the service composes itself. ``.html`` sources autoescape, ``.txt`` sources do not.
EMAIL_SOURCES: dict[str, str] = {
    "layout.html": (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; color: #1f2933;">'
        '<h2 style="color: {{ branding.primary_color }};">{{ branding.name }}</h2>'
        "{% block content %}{% endblock %}"
        '<p style="color: #7b8794; font-size: 12px;">{{ branding.footer_text or "Sent with Approv" }}</p>'
        "</div>"
    ),
    "macros.html": (
        '{% macro button(url, label, color) %}<p><a href="{{ url }}" style="background: {{ color }}; '
        'color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 4px;">{{ label }}</a></p>'
        "{% endmacro %}"
    ),
    "approval_request.html": (
        '{% extends "layout.html" %}{% block content %}{% from "macros.html" import button %}'
        "<p>Dear {{ client_name }},</p>"
        "<p>We have prepared the <strong>{{ stage_label }}</strong> for "
        "<strong>{{ project_name }}</strong> and would appreciate your review.</p>"
        '{{ button(approval_url, "Review and respond", branding.primary_color) }}'
        "<p>This link expires on {{ expires_on }}.</p>"
        "{% endblock %}"
    ),
    "approval_request.txt": (
        "Dear {{ client_name }},\n\nThe {{ stage_label }} for {{ project_name }} is ready for your review.\n"
        "Review and respond: {{ approval_url }}\n\nThis link expires on {{ expires_on }}.\n"
    ),
    "approval_confirmation.html": (
        '{% extends "layout.html" %}{% block content %}'
        "<p>Dear {{ client_name }},</p>"
        "<p>{{ outcome }} the <strong>{{ stage_label }}</strong> for "
        "<strong>{{ project_name }}</strong>. The team has been notified.</p>"
        "{% endblock %}"
    ),
    "approval_reminder.html": (
        '{% extends "layout.html" %}{% block content %}{% from "macros.html" import button %}'
        "<p>Dear {{ client_name }},</p>"
        "<p>The <strong>{{ stage_label }}</strong> for <strong>{{ project_name }}</strong> "
        "has been awaiting your review for {{ days_pending }} days.</p>"
        "{% if urgent %}<p><strong>Your response is needed so the project can continue.</strong></p>{% endif %}"
        '{{ button(approval_url, "Review and respond", branding.primary_color) }}'
        "<p>This link expires on {{ expires_on }}.</p>"
        "{% endblock %}"
    ),
    "team_notification.html": (
        '{% extends "layout.html" %}{% block content %}{% from "macros.html" import button %}'
        "<p><strong>{{ client_name }}</strong> {{ verb }} the "
        "<strong>{{ stage_label }}</strong> for <strong>{{ project_name }}</strong>.</p>"
        "{% if notes %}<blockquote>{{ notes }}</blockquote>{% endif %}"
        '{{ button(project_url, "View project", branding.primary_color) }}'
        "{% endblock %}"
    ),
}

# A missing variable in our own emails is a bug, so these fail loudly
email_env = SandboxedEnvironment(
    loader=DictLoader(EMAIL_SOURCES),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=True),
    undefined=StrictUndefined,
    finalize=_blank_none,
    keep_trailing_newline=True,
)


def render_email(name: str, **context: Any) -> str:
    """Render one of :data:`EMAIL_SOURCES`, e.g. ``render_email("approval_request.html", ...)``."""
    return email_env.get_template(name).render(**context)
