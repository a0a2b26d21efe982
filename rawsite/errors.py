from __future__ import annotations


class SiteError(Exception):
    pass


class MissingTemplate(SiteError):
    pass


class UnresolvablePath(SiteError):
    pass


class ParseSkip(SiteError):
    pass


class WriteFailure(SiteError):
    pass
