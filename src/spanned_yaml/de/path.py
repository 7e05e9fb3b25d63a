"""Optional path recording around any ``Decoder``.

``PathTrackingDecoder`` wraps a decoder (and, transitively, every visitor,
cursor and seed handed through it) and remembers where in the document the
first error was raised: a list of sequence indices and mapping keys. The
wrapped decoders never know they are being watched.

Keys of the span-smuggling map are not recorded, so ``Spanned`` values are
invisible in paths.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from spanned_yaml.de.protocol import Decoder, MapAccess, SeqAccess, Seed, Visitor
from spanned_yaml.de.reserved import SPANNED_FIELDS
from spanned_yaml.errors import DecodeError

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SeqSegment:
    index: int

    def __str__(self) -> str:
        return f"[{self.index}]"


@dataclass(frozen=True)
class MapSegment:
    key: str

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class EnumSegment:
    """Reserved for enum variants. The built-in decoders never record one."""

    variant: str

    def __str__(self) -> str:
        return self.variant


@dataclass(frozen=True)
class UnknownSegment:
    def __str__(self) -> str:
        return "?"


Segment = SeqSegment | MapSegment | EnumSegment | UnknownSegment


@dataclass(frozen=True)
class Path:
    """Where an error happened, e.g. ``numbers[3]`` or ``says.grow``."""

    segments: tuple[Segment, ...] = ()

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        if not self.segments:
            return "."
        parts = []
        for i, segment in enumerate(self.segments):
            if i and not isinstance(segment, SeqSegment):
                parts.append(".")
            parts.append(str(segment))
        return "".join(parts)


@dataclass(frozen=True)
class _Chain:
    parent: _Chain | None = None
    segment: Segment | None = None

    def child(self, segment: Segment) -> _Chain:
        return _Chain(self, segment)

    def to_path(self) -> Path:
        segments: list[Segment] = []
        chain: _Chain | None = self
        while chain is not None:
            if chain.segment is not None:
                segments.append(chain.segment)
            chain = chain.parent
        return Path(tuple(reversed(segments)))


ROOT = _Chain()


class Track:
    """Keeps the path of the deepest (first reported) failure."""

    def __init__(self) -> None:
        self.path: Path | None = None

    def trigger(self, chain: _Chain) -> None:
        if self.path is None:
            self.path = chain.to_path()


# ---------------------------------------------------------------------------
# Wrappers
# ---------------------------------------------------------------------------


def _rewrapping(request: str) -> Callable[..., Any]:
    def call(self: _WrappingDecoder, *args: Any) -> Any:
        *params, visitor = args
        return self._call(request, params, visitor)

    call.__name__ = request
    return call


class _WrappingDecoder(Decoder):
    """Forwards every request to ``inner`` with its visitor wrapped."""

    def __init__(self, inner: Decoder) -> None:
        self.inner = inner

    def _wrap(self, visitor: Visitor) -> Visitor:
        raise NotImplementedError

    def _call(self, request: str, params: Sequence[Any], visitor: Visitor) -> Any:
        return getattr(self.inner, request)(*params, self._wrap(visitor))

    decode_any = _rewrapping("decode_any")
    decode_bool = _rewrapping("decode_bool")
    decode_int = _rewrapping("decode_int")
    decode_float = _rewrapping("decode_float")
    decode_char = _rewrapping("decode_char")
    decode_str = _rewrapping("decode_str")
    decode_bytes = _rewrapping("decode_bytes")
    decode_option = _rewrapping("decode_option")
    decode_unit = _rewrapping("decode_unit")
    decode_newtype = _rewrapping("decode_newtype")
    decode_seq = _rewrapping("decode_seq")
    decode_tuple = _rewrapping("decode_tuple")
    decode_map = _rewrapping("decode_map")
    decode_struct = _rewrapping("decode_struct")
    decode_enum = _rewrapping("decode_enum")
    decode_identifier = _rewrapping("decode_identifier")
    decode_ignored_any = _rewrapping("decode_ignored_any")


class _DelegatingVisitor(Visitor):
    def __init__(self, inner: Visitor) -> None:
        self.inner = inner

    @property  # type: ignore[override]
    def expecting(self) -> str:
        return self.inner.expecting

    def visit_bool(self, value: bool) -> Any:
        return self.inner.visit_bool(value)

    def visit_int(self, value: int) -> Any:
        return self.inner.visit_int(value)

    def visit_float(self, value: float) -> Any:
        return self.inner.visit_float(value)

    def visit_str(self, value: str) -> Any:
        return self.inner.visit_str(value)

    def visit_bytes(self, value: bytes) -> Any:
        return self.inner.visit_bytes(value)

    def visit_none(self) -> Any:
        return self.inner.visit_none()

    def visit_some(self, decoder: Decoder) -> Any:
        return self.inner.visit_some(decoder)

    def visit_unit(self) -> Any:
        return self.inner.visit_unit()

    def visit_newtype(self, decoder: Decoder) -> Any:
        return self.inner.visit_newtype(decoder)

    def visit_seq(self, access: SeqAccess) -> Any:
        return self.inner.visit_seq(access)

    def visit_map(self, access: MapAccess) -> Any:
        return self.inner.visit_map(access)


class PathTrackingDecoder(_WrappingDecoder):
    def __init__(self, inner: Decoder, chain: _Chain, track: Track) -> None:
        super().__init__(inner)
        self.chain = chain
        self.track = track

    def _wrap(self, visitor: Visitor) -> Visitor:
        return _TrackedVisitor(visitor, self.chain, self.track)

    def _call(self, request: str, params: Sequence[Any], visitor: Visitor) -> Any:
        try:
            return super()._call(request, params, visitor)
        except DecodeError:
            self.track.trigger(self.chain)
            raise


class _TrackedVisitor(_DelegatingVisitor):
    def __init__(self, inner: Visitor, chain: _Chain, track: Track) -> None:
        super().__init__(inner)
        self.chain = chain
        self.track = track

    def visit_some(self, decoder: Decoder) -> Any:
        return self.inner.visit_some(PathTrackingDecoder(decoder, self.chain, self.track))

    def visit_newtype(self, decoder: Decoder) -> Any:
        return self.inner.visit_newtype(PathTrackingDecoder(decoder, self.chain, self.track))

    def visit_seq(self, access: SeqAccess) -> Any:
        return self.inner.visit_seq(_TrackedSeqAccess(access, self.chain, self.track))

    def visit_map(self, access: MapAccess) -> Any:
        return self.inner.visit_map(_TrackedMapAccess(access, self.chain, self.track))


class _TrackedSeed:
    def __init__(self, seed: Seed, chain: _Chain, track: Track) -> None:
        self.seed = seed
        self.chain = chain
        self.track = track

    def decode(self, decoder: Decoder) -> Any:
        return self.seed.decode(PathTrackingDecoder(decoder, self.chain, self.track))


class _TrackedSeqAccess(SeqAccess):
    def __init__(self, inner: SeqAccess, chain: _Chain, track: Track) -> None:
        self.inner = inner
        self.chain = chain
        self.track = track
        self.index = 0

    def next_element(self, seed: Seed) -> Any:
        chain = self.chain.child(SeqSegment(self.index))
        self.index += 1
        try:
            return self.inner.next_element(_TrackedSeed(seed, chain, self.track))
        except DecodeError:
            self.track.trigger(self.chain)
            raise

    def size_hint(self) -> int | None:
        return self.inner.size_hint()


class _KeyCaptureVisitor(_DelegatingVisitor):
    def __init__(self, inner: Visitor, sink: _KeyCapture) -> None:
        super().__init__(inner)
        self.sink = sink

    def visit_bool(self, value: bool) -> Any:
        self.sink.key = "true" if value else "false"
        return self.inner.visit_bool(value)

    def visit_int(self, value: int) -> Any:
        self.sink.key = str(value)
        return self.inner.visit_int(value)

    def visit_float(self, value: float) -> Any:
        self.sink.key = str(value)
        return self.inner.visit_float(value)

    def visit_str(self, value: str) -> Any:
        self.sink.key = value
        return self.inner.visit_str(value)


class _KeyCaptureDecoder(_WrappingDecoder):
    def __init__(self, inner: Decoder, sink: _KeyCapture) -> None:
        super().__init__(inner)
        self.sink = sink

    def _wrap(self, visitor: Visitor) -> Visitor:
        return _KeyCaptureVisitor(visitor, self.sink)


class _KeyCapture:
    """Seed remembering the text a map key was decoded from."""

    def __init__(self, seed: Seed) -> None:
        self.seed = seed
        self.key: str | None = None

    def decode(self, decoder: Decoder) -> Any:
        return self.seed.decode(_KeyCaptureDecoder(decoder, self))


class _TrackedMapAccess(MapAccess):
    def __init__(self, inner: MapAccess, chain: _Chain, track: Track) -> None:
        self.inner = inner
        self.chain = chain
        self.track = track
        self.key: str | None = None

    def _key_chain(self, key: str | None) -> _Chain:
        if key is None:
            return self.chain.child(UnknownSegment())
        if key in SPANNED_FIELDS:
            return self.chain
        return self.chain.child(MapSegment(key))

    def next_key(self, seed: Seed) -> Any:
        capture = _KeyCapture(seed)
        try:
            result = self.inner.next_key(capture)
        except DecodeError:
            self.track.trigger(self._key_chain(capture.key))
            raise
        self.key = capture.key
        return result

    def next_value(self, seed: Seed) -> Any:
        chain = self._key_chain(self.key)
        self.key = None
        try:
            return self.inner.next_value(_TrackedSeed(seed, chain, self.track))
        except DecodeError:
            self.track.trigger(self.chain)
            raise

    def size_hint(self) -> int | None:
        return self.inner.size_hint()
