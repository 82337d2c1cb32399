import orjson
import msgspec


class Message(msgspec.Struct, kw_only=True):

    @classmethod
    def load(cls, data: bytes):
        return msgspec.json.decode(data, type=cls)

    def dump(self) -> bytes:
        return orjson.dumps(
            msgspec.structs.asdict(self)
        )
