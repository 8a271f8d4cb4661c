from __future__ import annotations

import logging

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError

from ..models import Canvas, CanvasResponse
from .exceptions import CanvifyDecodeException

logger = logging.getLogger(__name__)

CANVAZ_PACKAGE = "com.spotify.canvazcache"

_FieldProto = descriptor_pb2.FieldDescriptorProto


def _build_canvaz_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="canvaz.proto",
        package=CANVAZ_PACKAGE,
        syntax="proto3",
    )

    request = file_proto.message_type.add(name="EntityCanvazRequest")
    entity = request.nested_type.add(name="Entity")
    entity.field.add(
        name="entity_uri",
        number=1,
        type=_FieldProto.TYPE_STRING,
        label=_FieldProto.LABEL_OPTIONAL,
    )
    request.field.add(
        name="entities",
        number=1,
        type=_FieldProto.TYPE_MESSAGE,
        label=_FieldProto.LABEL_REPEATED,
        type_name=f".{CANVAZ_PACKAGE}.EntityCanvazRequest.Entity",
    )

    response = file_proto.message_type.add(name="EntityCanvazResponse")
    canvaz = response.nested_type.add(name="Canvaz")
    for number, name, field_type in (
        (1, "id", _FieldProto.TYPE_STRING),
        (2, "url", _FieldProto.TYPE_STRING),
        (3, "file_id", _FieldProto.TYPE_STRING),
        (4, "type", _FieldProto.TYPE_INT32),
        (5, "entity_uri", _FieldProto.TYPE_STRING),
    ):
        canvaz.field.add(
            name=name,
            number=number,
            type=field_type,
            label=_FieldProto.LABEL_OPTIONAL,
        )
    response.field.add(
        name="canvases",
        number=1,
        type=_FieldProto.TYPE_MESSAGE,
        label=_FieldProto.LABEL_REPEATED,
        type_name=f".{CANVAZ_PACKAGE}.EntityCanvazResponse.Canvaz",
    )
    response.field.add(
        name="ttl_in_seconds",
        number=2,
        type=_FieldProto.TYPE_INT64,
        label=_FieldProto.LABEL_OPTIONAL,
    )

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_canvaz_file().SerializeToString())

EntityCanvazRequest = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{CANVAZ_PACKAGE}.EntityCanvazRequest")
)
EntityCanvazResponse = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{CANVAZ_PACKAGE}.EntityCanvazResponse")
)


def encode_canvaz_request(track_uri: str) -> bytes:
    message = EntityCanvazRequest()
    message.entities.add(entity_uri=track_uri)
    return message.SerializeToString()


def decode_canvaz_response(data: bytes) -> CanvasResponse:
    message = EntityCanvazResponse()
    try:
        message.ParseFromString(data)
    except DecodeError as e:
        raise CanvifyDecodeException(f"Malformed canvas response: {e}") from e

    canvas_response = CanvasResponse(
        canvases=tuple(
            Canvas(
                id=canvaz.id,
                url=canvaz.url,
                file_id=canvaz.file_id,
                type=canvaz.type,
                entity_uri=canvaz.entity_uri,
            )
            for canvaz in message.canvases
        ),
        ttl_in_seconds=message.ttl_in_seconds,
    )

    logger.debug(f"Decoded canvas response: {canvas_response}")

    return canvas_response
