class ConfigurationError(ValueError):
    """Malformed or incomplete bundle configuration.

    Raised at load time for unparseable files, duplicate keys, missing required
    fields and conflicting records.

    Attributes:
        source: File the problem was found in, when known.
        field: Dotted path of the offending field (e.g. "languages.typescript.server.command").
    """

    def __init__(self, message: str, *, source: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.field = field

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(self.source)
        if self.field:
            parts.append(self.field)
        if not parts:
            return self.message
        return f"{': '.join(parts)}: {self.message}"
