# ldiff_patcher/manifest.py
from __future__ import annotations
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.json_format import MessageToDict
from google.protobuf.message import DecodeError as _ProtoDecodeError

from .errors import DecodeError, FatalStartupError
from .log import log

# Wire layout of the manifest (only the fields we read):
#
#   message root      { repeated manifest manifests = 1; }
#   message manifest  { string fileName = 1; string fileHash = 2; int64 size = 3;
#                       repeated fileData fileData = 4; }
#   message fileData  { repeated patchInfo patchInfo = 1; }
#   message patchInfo { string id = 1; int64 offset = 2; int64 size = 3; }
_PACKAGE = "ldiff"

_F = descriptor_pb2.FieldDescriptorProto


def _field(msg, name: str, number: int, ftype: int, repeated: bool = False, type_name: str | None = None):
    f = msg.field.add()
    f.name = name
    f.json_name = name
    f.number = number
    f.type = ftype
    f.label = _F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL
    if type_name:
        f.type_name = f".{_PACKAGE}.{type_name}"


def _build_root_class():
    fdp = descriptor_pb2.FileDescriptorProto()
    fdp.name = "ldiff_manifest.proto"
    fdp.package = _PACKAGE
    fdp.syntax = "proto3"

    patch_info = fdp.message_type.add(name="patchInfo")
    _field(patch_info, "id", 1, _F.TYPE_STRING)
    _field(patch_info, "offset", 2, _F.TYPE_INT64)
    _field(patch_info, "size", 3, _F.TYPE_INT64)

    file_data = fdp.message_type.add(name="fileData")
    _field(file_data, "patchInfo", 1, _F.TYPE_MESSAGE, repeated=True, type_name="patchInfo")

    manifest = fdp.message_type.add(name="manifest")
    _field(manifest, "fileName", 1, _F.TYPE_STRING)
    _field(manifest, "fileHash", 2, _F.TYPE_STRING)
    _field(manifest, "size", 3, _F.TYPE_INT64)
    _field(manifest, "fileData", 4, _F.TYPE_MESSAGE, repeated=True, type_name="fileData")

    root = fdp.message_type.add(name="root")
    _field(root, "manifests", 1, _F.TYPE_MESSAGE, repeated=True, type_name="manifest")

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(fdp.SerializeToString())
    return message_factory.GetMessageClass(pool.FindMessageTypeByName(f"{_PACKAGE}.root"))


RootMessage = _build_root_class()


@dataclass(frozen=True)
class PatchSegment:
    container_id: str
    offset: int
    size: int


@dataclass(frozen=True)
class ManifestEntry:
    file_name: str
    file_hash: str
    size: int
    segments: tuple[PatchSegment, ...] = ()


@dataclass(frozen=True)
class Manifest:
    entries: tuple[ManifestEntry, ...]
    message: Any = None

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _entry_from_message(m) -> ManifestEntry:
    segments = []
    for fd in m.fileData:
        for pi in fd.patchInfo:
            if pi.offset < 0 or pi.size < 0:
                log(f"{m.fileName}: dropping patch segment {pi.id!r} with offset={pi.offset} size={pi.size}")
                continue
            segments.append(PatchSegment(pi.id, int(pi.offset), int(pi.size)))
    return ManifestEntry(m.fileName, m.fileHash, int(m.size), tuple(segments))


def decode_manifest(data: bytes) -> Manifest:
    """Decode raw manifest bytes into entries, in manifest order."""
    message = RootMessage()
    try:
        message.ParseFromString(data)
    except (_ProtoDecodeError, ValueError) as e:
        raise DecodeError(f"error decoding manifest: {e}") from e

    # nameless rows carry nothing we can select on
    entries = tuple(_entry_from_message(m) for m in message.manifests if m.fileName)
    return Manifest(entries, message)


def read_manifest(path: str | Path) -> Manifest:
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise FatalStartupError(f"cannot read manifest {p}: {e}") from e
    return decode_manifest(data)


def _to_dict(message) -> dict:
    # default-valued fields are kept; the keyword was renamed in protobuf 5.26
    try:
        return MessageToDict(message, preserving_proto_field_name=True,
                             always_print_fields_with_no_presence=True)
    except TypeError:
        return MessageToDict(message, preserving_proto_field_name=True,
                             including_default_value_fields=True)


def dump_manifest_json(message, path: str | Path) -> bool:
    """Write the decoded manifest as JSON for inspection. Never raises."""
    p = Path(path)
    try:
        data = _to_dict(message)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    except Exception as e:
        log(f"error writing manifest JSON to {p}: {e}")
        return False
    log(f"parsed manifest saved to {p}")
    return True
