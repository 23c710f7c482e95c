"""
Feature detection for Tutor LMS and its Pro addons.

AddonChecker answers low-level questions from the WordPress options table
(``active_plugins`` and Tutor Pro's ``tutor_addons_config``). FeatureFlags
combines availability with the caller's capabilities, so an endpoint can ask
``can_user_access_feature("certificates", user)`` and nothing else.
"""
import logging
from typing import Optional

from tutorpress.auth.capabilities import CurrentUser
from tutorpress.services.store import WordPressStore

logger = logging.getLogger(__name__)

TUTOR_LMS_PLUGIN = "tutor/tutor.php"
TUTOR_PRO_PLUGIN = "tutor-pro/tutor-pro.php"

ADDON_BASENAMES = {
    "certificate": "tutor-pro/addons/tutor-certificate/tutor-certificate.php",
    "course_bundle": "tutor-pro/addons/course-bundle/course-bundle.php",
}

# Capability each feature requires once it is available
FEATURE_CAPABILITIES = {
    "certificates": "edit_posts",
    "course_bundles": "edit_posts",
    "pricing_models": "manage_options",
}


class AddonChecker:
    def __init__(self, store: WordPressStore):
        self.store = store
        self._cache: dict[str, bool] = {}

    def _active_plugins(self) -> list[str]:
        plugins = self.store.get_option("active_plugins", [])
        if isinstance(plugins, dict):
            plugins = list(plugins.values())
        if not isinstance(plugins, list):
            return []
        return [str(p) for p in plugins]

    def is_plugin_active(self, basename: str) -> bool:
        return basename in self._active_plugins()

    def is_tutor_lms_active(self) -> bool:
        return self.is_plugin_active(TUTOR_LMS_PLUGIN)

    def is_tutor_pro_active(self) -> bool:
        return self.is_plugin_active(TUTOR_PRO_PLUGIN)

    def is_addon_enabled(self, addon_key: str) -> bool:
        if addon_key in self._cache:
            return self._cache[addon_key]

        basename = ADDON_BASENAMES.get(addon_key)
        result = False
        if basename and self.is_tutor_pro_active():
            config = self.store.get_option("tutor_addons_config", {})
            entry = config.get(basename) if isinstance(config, dict) else None
            if isinstance(entry, dict):
                result = bool(entry.get("is_enable"))

        self._cache[addon_key] = result
        return result

    def is_certificate_enabled(self) -> bool:
        return self.is_addon_enabled("certificate")

    def is_course_bundle_enabled(self) -> bool:
        return self.is_addon_enabled("course_bundle")

    def get_all_addon_status(self) -> dict[str, bool]:
        return {key: self.is_addon_enabled(key) for key in ADDON_BASENAMES}


class FeatureFlags:
    def __init__(self, addon_checker: AddonChecker):
        self.addon_checker = addon_checker
        self._features: Optional[dict[str, bool]] = None

    def get_available_features(self) -> dict[str, bool]:
        if self._features is None:
            checker = self.addon_checker
            self._features = {
                "tutor_integration": checker.is_tutor_lms_active(),
                "pro_features": checker.is_tutor_pro_active(),
                "certificates": checker.is_certificate_enabled(),
                "course_bundles": checker.is_course_bundle_enabled(),
                "pricing_models": checker.is_tutor_lms_active(),
            }
        return self._features

    def can_user_access_feature(self, feature: str, user: Optional[CurrentUser]) -> bool:
        if not self.get_available_features().get(feature, False):
            return False
        capability = FEATURE_CAPABILITIES.get(feature, "edit_posts")
        allowed = user is not None and user.can(capability)
        if not allowed:
            logger.debug("Feature %s denied for user %s", feature, getattr(user, "id", None))
        return allowed
