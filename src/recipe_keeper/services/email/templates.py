"""Jinja2 rendering for transactional emails."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape


TEMPLATES = Environment(
    loader=FileSystemLoader(Path(__file__).parent / "templates"),
    autoescape=select_autoescape(enabled_extensions=("html",)),
    trim_blocks=True,
    lstrip_blocks=True,
)

ROLE_DESCRIPTIONS: dict[str, str] = {
    "owner": (
        "full control of this cookbook "
        "(can add recipes, manage members, and delete the cookbook)"
    ),
    "editor": "add and edit recipes in this cookbook",
    "viewer": "view recipes in this cookbook",
}


def render_cookbook_invitation(
    *,
    inviter_name: str,
    cookbook_name: str,
    role: str,
    accept_url: str,
    app_url: str,
    is_pending: bool,
    recipes_count: int = 0,
) -> tuple[str, str]:
    """Render the invitation email.

    Returns:
        The HTML body and the plain-text body.
    """
    context = {
        "inviter_name": inviter_name,
        "cookbook_name": cookbook_name,
        "role": role,
        "role_description": ROLE_DESCRIPTIONS.get(role, ROLE_DESCRIPTIONS["viewer"]),
        "accept_url": accept_url,
        "app_url": app_url,
        "is_pending": is_pending,
        "recipes_count": recipes_count,
    }
    html = TEMPLATES.get_template("cookbook_invitation.html").render(**context)
    text = TEMPLATES.get_template("cookbook_invitation.txt").render(**context)
    return html, text
