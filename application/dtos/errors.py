class AppError:
    """Represents different categories of application errors."""

    def __init__(self, category: str, message: str) -> None:
        # 'missing_field', 'size_exceeded', 'unsupported_media_type', 'validation',
        # 'not_found', 'storage', 'derivation', 'infrastructure'
        self.category = category
        self.message = message

    def __str__(self) -> str:
        return self.message
