"""
chains/abi.py - Minimal ABI encoding for the calls the gateway makes.

Covers ERC20 metadata, UniswapV2-style factory getPair and pair
getReserves/token0/token1. Encoding is done by hand on 32-byte words.
"""

from core.exceptions import ErrorCode, UpstreamUnavailableError

WORD_HEX = 64

# keccak256(signature)[:4]
SELECTOR_NAME = "06fdde03"          # name()
SELECTOR_SYMBOL = "95d89b41"        # symbol()
SELECTOR_DECIMALS = "313ce567"      # decimals()
SELECTOR_TOTAL_SUPPLY = "18160ddd"  # totalSupply()
SELECTOR_GET_PAIR = "e6a43905"      # getPair(address,address)
SELECTOR_GET_RESERVES = "0902f1ac"  # getReserves()
SELECTOR_TOKEN0 = "0dfe1681"        # token0()
SELECTOR_TOKEN1 = "d21220a7"        # token1()


def _bad_response(message: str, raw: str) -> UpstreamUnavailableError:
    return UpstreamUnavailableError(
        message,
        code=ErrorCode.UPSTREAM_BAD_RESPONSE,
        details={"raw": raw[:138]},
    )


def _strip(hex_result: str) -> str:
    if hex_result is None:
        raise _bad_response("Empty call result", "")
    return hex_result[2:] if hex_result.startswith("0x") else hex_result


def encode_address(address: str) -> str:
    """Left-pad a 20-byte address to one word."""
    return address.lower().replace("0x", "").zfill(WORD_HEX)


def encode_call(selector: str, *addresses: str) -> str:
    """Calldata for a selector taking only address arguments."""
    return "0x" + selector + "".join(encode_address(a) for a in addresses)


def encode_get_pair(token_a: str, token_b: str) -> str:
    return encode_call(SELECTOR_GET_PAIR, token_a, token_b)


def words(hex_result: str, count: int) -> list[str]:
    """Split the first count words out of a call result."""
    data = _strip(hex_result)
    if len(data) < count * WORD_HEX:
        raise _bad_response(
            f"Call result too short: {len(data)} chars, need {count * WORD_HEX}",
            hex_result,
        )
    return [data[i * WORD_HEX:(i + 1) * WORD_HEX] for i in range(count)]


def decode_uint(hex_result: str) -> int:
    return int(words(hex_result, 1)[0], 16)


def decode_address(hex_result: str) -> str:
    """Decode one address word to 0x-prefixed lower-case form."""
    return "0x" + words(hex_result, 1)[0][-40:]


def decode_string(hex_result: str) -> str:
    """
    Decode a string return value.

    Handles the ABI dynamic string layout (offset, length, data) and the
    legacy bytes32 layout some older tokens use for name()/symbol().
    """
    data = _strip(hex_result)
    if len(data) == WORD_HEX:
        raw = bytes.fromhex(data).rstrip(b"\x00")
        return raw.decode("utf-8", errors="replace")

    offset_word, = words(hex_result, 1)
    offset = int(offset_word, 16) * 2
    if len(data) < offset + WORD_HEX:
        raise _bad_response("String offset out of range", hex_result)

    length = int(data[offset:offset + WORD_HEX], 16) * 2
    start = offset + WORD_HEX
    if len(data) < start + length:
        raise _bad_response("String length out of range", hex_result)

    return bytes.fromhex(data[start:start + length]).decode("utf-8", errors="replace")


def decode_reserves(hex_result: str) -> tuple[int, int, int]:
    """
    Decode getReserves().

    Returns:
        (reserve0, reserve1, block_timestamp_last)
    """
    r0, r1, ts = words(hex_result, 3)
    return int(r0, 16), int(r1, 16), int(ts, 16)
