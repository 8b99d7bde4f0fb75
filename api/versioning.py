"""
API-version gate.

before_request: resolve the version from the path (default when absent) and
reject unsupported ones with 400.
after_request: stamp X-API-Version / X-API-Supported-Versions on every
response, plus deprecation headers for versions scheduled for removal.
"""
from flask import current_app, g, request

from utils.api_version import extract_version, get_api_prefix
from .errors import error_response


def api_prefix() -> str:
    cfg = current_app.config
    return get_api_prefix(cfg["API_PREFIX_ENABLED"], cfg["API_PREFIX"])


def supported_versions() -> list[str]:
    return list(current_app.config["SUPPORTED_API_VERSIONS"])


def current_version() -> str:
    return current_app.config["API_VERSION"]


def init_versioning(app):
    @app.before_request
    def validate_api_version():
        requested = extract_version(request.path, api_prefix())
        g.requested_api_version = requested
        if requested is None:
            g.api_version = current_version()
            return None

        supported = supported_versions()
        if requested not in supported:
            g.api_version = current_version()
            return error_response(
                f"API version '{requested}' is not supported. "
                f"Supported versions: {', '.join(supported)}",
                400,
                data={"requestedVersion": requested, "supportedVersions": supported},
            )

        g.api_version = requested
        return None

    @app.after_request
    def add_version_headers(response):
        version = g.get("api_version") or current_version()
        response.headers["X-API-Version"] = version
        response.headers["X-API-Supported-Versions"] = ", ".join(supported_versions())

        sunset = current_app.config.get("DEPRECATED_API_VERSIONS", {}).get(version)
        if sunset is not None:
            response.headers["Deprecation"] = "true"
            response.headers["Sunset"] = sunset
            response.headers["X-Deprecation-Warning"] = (
                f"API version {version} is deprecated and will be removed on {sunset}"
            )
        return response
