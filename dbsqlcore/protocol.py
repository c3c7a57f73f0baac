"""Server protocol versions and the features each one supports."""

from __future__ import annotations

import enum


class ProtocolVersion(enum.IntEnum):
    HIVE_CLI_SERVICE_PROTOCOL_V1 = 0
    HIVE_CLI_SERVICE_PROTOCOL_V2 = 1
    HIVE_CLI_SERVICE_PROTOCOL_V3 = 2
    HIVE_CLI_SERVICE_PROTOCOL_V4 = 3
    HIVE_CLI_SERVICE_PROTOCOL_V5 = 4
    HIVE_CLI_SERVICE_PROTOCOL_V6 = 5
    HIVE_CLI_SERVICE_PROTOCOL_V7 = 6
    HIVE_CLI_SERVICE_PROTOCOL_V8 = 7
    HIVE_CLI_SERVICE_PROTOCOL_V9 = 8
    HIVE_CLI_SERVICE_PROTOCOL_V10 = 9
    SPARK_CLI_SERVICE_PROTOCOL_V1 = 0xA501
    SPARK_CLI_SERVICE_PROTOCOL_V2 = 0xA502
    SPARK_CLI_SERVICE_PROTOCOL_V3 = 0xA503
    SPARK_CLI_SERVICE_PROTOCOL_V4 = 0xA504
    SPARK_CLI_SERVICE_PROTOCOL_V5 = 0xA505
    SPARK_CLI_SERVICE_PROTOCOL_V6 = 0xA506
    SPARK_CLI_SERVICE_PROTOCOL_V7 = 0xA507
    SPARK_CLI_SERVICE_PROTOCOL_V8 = 0xA508


def supports_direct_results(version: int) -> bool:
    return version >= ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V1


def supports_lz4_compression(version: int) -> bool:
    return version >= ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V6


def supports_cloud_fetch(version: int) -> bool:
    return version >= ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V3


def supports_arrow(version: int) -> bool:
    return version >= ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V5


def supports_compressed_arrow(version: int) -> bool:
    return version >= ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V6


def supports_parameterized_queries(version: int) -> bool:
    return version >= ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V8


def supports_multiple_catalogs(version: int) -> bool:
    return version >= ProtocolVersion.SPARK_CLI_SERVICE_PROTOCOL_V4