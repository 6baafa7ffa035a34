from sqlalchemy import Enum as SAEnum


class CaseInsensitiveEnum(SAEnum):
    """Enum column type storing ``value`` strings and accepting any casing.

    Both member values (``"pending"``) and member names (``"PENDING"``) are
    accepted on write; reads always come back as enum members.
    """

    cache_ok = True

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = kwargs.copy()
        kwargs.setdefault("values_callable", lambda enum: [e.value for e in enum])
        kwargs.setdefault("native_enum", False)
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        params = {**self._enum_kwargs, **kw}
        return CaseInsensitiveEnum(self._enum_cls, **params)

    def _normalize(self, value):
        if isinstance(value, self._enum_cls):
            return value.value
        return str(value).lower()

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            if value is None:
                return None
            value = self._normalize(value)
            if parent:
                return parent(value)
            return value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            if isinstance(value, str):
                value = value.lower()
            if parent:
                return parent(value)
            return self._enum_cls(value)

        return process
