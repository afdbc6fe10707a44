"""CRUD operations module."""

from .common import parse_uuid
from .users import create_user, get_user_by_email, get_user_by_id
from .presentations import (
    create_presentation,
    get_presentation,
    list_presentations,
    update_presentation,
    delete_presentation,
)
from .versions import (
    create_version,
    get_version,
    get_version_by_slug,
    list_versions_for_presentation,
    count_sessions_by_version,
    update_version_variables,
    delete_version,
)
from .templates import create_template, get_template_by_slug, list_active_templates
from .view_sessions import view_session_crud


__all__ = [
    "parse_uuid",

    # Users
    "create_user",
    "get_user_by_email",
    "get_user_by_id",

    # Presentations
    "create_presentation",
    "get_presentation",
    "list_presentations",
    "update_presentation",
    "delete_presentation",

    # Versions
    "create_version",
    "get_version",
    "get_version_by_slug",
    "list_versions_for_presentation",
    "count_sessions_by_version",
    "update_version_variables",
    "delete_version",

    # Templates
    "create_template",
    "get_template_by_slug",
    "list_active_templates",

    # Sessions and rollups
    "view_session_crud",
]
