from typing import Callable, TypeVar

import msgspec

T = TypeVar("T")

_encoder = msgspec.json.Encoder()


def encode(message: msgspec.Struct) -> bytes:
    return _encoder.encode(message)


def decoder_for(message_type: type[T]) -> Callable[[bytes], T]:
    return msgspec.json.Decoder(message_type).decode
