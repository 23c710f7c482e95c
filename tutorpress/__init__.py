"""TutorPress REST API for Tutor LMS course bundles and certificates."""
__version__ = "0.1.0"
