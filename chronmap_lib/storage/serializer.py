from typing import Any, Dict, Optional, Protocol
import base64
import json
import os
import pickle
import yaml

from chronmap_lib.errors import ConfigurationError


class Serializer(Protocol):
    """Serialize/deserialize keys or values for the durable store.

    Implementations should be symmetric: `dump` -> bytes, `load` <- bytes.
    """

    def dump(self, value: Any) -> bytes: ...

    def load(self, data: bytes) -> Any: ...


class PickleSerializer:
    """Default serializer using pickle (binary).

    Works for arbitrary Python objects, so it is the practical default for
    values. Use `StringSerializer` or `JSONSerializer` when the file should
    be readable by other tools.
    """

    def dump(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)

    def load(self, data: bytes) -> Any:
        return pickle.loads(data)


class StringSerializer:
    """UTF-8 text serializer for `str` keys and values."""

    def dump(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise TypeError(f"StringSerializer expects str, got {type(value).__name__}")
        return value.encode("utf-8")

    def load(self, data: bytes) -> Any:
        return data.decode("utf-8")


class JSONSerializer:
    """Serializer using JSON (text). Caller must ensure values are JSON-serializable."""

    def dump(self, value: Any) -> bytes:
        return json.dumps(value, default=lambda o: o.__dict__).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class YAMLSerializer:
    """Serializer using YAML (text). Caller must ensure values are YAML-serializable."""

    def dump(self, value: Any) -> bytes:
        return yaml.safe_dump(value).encode("utf-8")

    def load(self, data: bytes) -> Any:
        return yaml.safe_load(data.decode("utf-8"))


class EncryptedSerializer:
    """Serializer that encrypts payloads with Fernet (symmetric, authenticated).

    Provide either `key` (a Fernet key) or `password`. In password mode every
    payload carries its own random salt and iteration count so it can be
    decrypted with nothing but the password. The plaintext is produced by
    `base_serializer` (pickle by default so any value can be stored).
    """

    def __init__(
        self,
        *,
        key: Optional[bytes] = None,
        password: Optional[str] = None,
        iterations: int = 390000,
        base_serializer: Optional[Serializer] = None,
    ) -> None:
        if key is None and password is None:
            raise ConfigurationError("EncryptedSerializer requires either `key` or `password`")
        self._key = key
        self._password = password
        self._iterations = iterations
        self.base_serializer = base_serializer or PickleSerializer()

    def _derive_key(self, salt: bytes, iterations: int) -> bytes:
        from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
        from cryptography.hazmat.primitives import hashes

        kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)
        return base64.urlsafe_b64encode(kdf.derive(self._password.encode("utf-8")))

    def dump(self, value: Any) -> bytes:
        from cryptography.fernet import Fernet

        inner = self.base_serializer.dump(value)
        if self._password is not None:
            salt = os.urandom(16)
            token = Fernet(self._derive_key(salt, self._iterations)).encrypt(inner)
            frame: Dict[str, Any] = {
                "v": 1,
                "mode": "password",
                "iterations": self._iterations,
                "salt": base64.urlsafe_b64encode(salt).decode("ascii"),
                "ct": token.decode("ascii"),
            }
        else:
            token = Fernet(self._key).encrypt(inner)
            frame = {"v": 1, "mode": "key", "ct": token.decode("ascii")}
        return json.dumps(frame).encode("utf-8")

    def load(self, data: bytes) -> Any:
        from cryptography.fernet import Fernet

        frame = json.loads(data.decode("utf-8"))
        mode = frame.get("mode")
        if mode == "password":
            if self._password is None:
                raise ValueError("serializer was not configured with a password")
            salt = base64.urlsafe_b64decode(frame["salt"].encode("ascii"))
            key = self._derive_key(salt, frame.get("iterations", self._iterations))
        elif mode == "key":
            if self._key is None:
                raise ValueError("serializer was not configured with a key")
            key = self._key
        else:
            raise ValueError("unknown frame format")
        return self.base_serializer.load(Fernet(key).decrypt(frame["ct"].encode("ascii")))


_SERIALIZERS = {
    "pickle": PickleSerializer,
    "string": StringSerializer,
    "json": JSONSerializer,
    "yaml": YAMLSerializer,
}


def create_serializer(name: str, **options: Any) -> Serializer:
    """Return a serializer by name.

    `encrypted` accepts the `EncryptedSerializer` keyword options plus
    `base` naming the inner serializer.
    """
    kind = (name or "").strip().lower()
    if kind == "encrypted":
        base = options.pop("base", None)
        if base is not None:
            options["base_serializer"] = create_serializer(base)
        return EncryptedSerializer(**options)
    try:
        return _SERIALIZERS[kind]()
    except KeyError:
        raise ConfigurationError(f"Unknown serializer {name!r}") from None
