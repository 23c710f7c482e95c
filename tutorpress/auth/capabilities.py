"""
WordPress roles and capabilities for the authenticated caller.

Roles live in the ``{prefix}capabilities`` user meta as a PHP-serialized map
(``a:1:{s:13:"administrator";b:1;}``). Keys that are not role names are
per-user capability grants, as in WP_User::get_role_caps().
"""
from dataclasses import dataclass, field

from tutorpress.config import settings
from tutorpress.models import User
from tutorpress.services.store import WordPressStore

_AUTHOR_CAPS = {
    "read", "upload_files", "edit_posts", "edit_published_posts",
    "publish_posts", "delete_posts", "delete_published_posts",
}

_EDITOR_CAPS = _AUTHOR_CAPS | {
    "edit_others_posts", "delete_others_posts", "edit_private_posts",
    "read_private_posts", "edit_pages", "edit_others_pages",
    "edit_published_pages", "publish_pages", "moderate_comments",
    "manage_categories", "unfiltered_html",
}

ROLE_CAPABILITIES = {
    "administrator": _EDITOR_CAPS | {
        "manage_options", "list_users", "edit_users", "promote_users",
        "activate_plugins", "edit_plugins", "edit_theme_options",
        "manage_tutor", "manage_tutor_instructor",
    },
    "editor": _EDITOR_CAPS,
    "author": _AUTHOR_CAPS,
    "contributor": {"read", "edit_posts", "delete_posts"},
    "subscriber": {"read"},
    # Registered by Tutor LMS for approved instructors
    "tutor_instructor": _AUTHOR_CAPS | {"manage_tutor_instructor"},
}


@dataclass
class CurrentUser:
    """The authenticated WordPress user and the capabilities it holds."""
    id: int
    user: User
    roles: list[str] = field(default_factory=list)
    capabilities: set[str] = field(default_factory=set)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def capabilities_meta_key() -> str:
    return f"{settings.table_prefix}capabilities"


def load_current_user(store: WordPressStore, user: User) -> CurrentUser:
    """Expand the user's roles into a CurrentUser."""
    stored = store.get_user_meta(user.id, capabilities_meta_key())
    roles: list[str] = []
    caps: set[str] = set()

    if isinstance(stored, dict):
        for name, granted in stored.items():
            name = str(name)
            if name in ROLE_CAPABILITIES:
                if granted:
                    roles.append(name)
                    caps |= ROLE_CAPABILITIES[name]
            elif granted:
                caps.add(name)
            else:
                caps.discard(name)

    return CurrentUser(id=user.id, user=user, roles=roles, capabilities=caps)
