# -*- coding: utf-8 -*-

""" eapSim: hex and base64 helpers for challenges and SIM responses
"""

import base64
import string
from typing import Optional

from osmocom.utils import h2b, b2h, Hexstr

from eapSim.exceptions import MalformedHex, RangeError

# Copyright (C) 2009-2010  Sylvain Munaut <tnt@246tNt.com>
# Copyright (C) 2021 Harald Welte <laforge@osmocom.org>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 2 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#

# Length-prefixed challenge encoding, as expected by the telephony SIM
# authentication call for the "with length" 2G/3G variants:
#
# |      byte 0       | byte 1 | ... | byte n |
# | len(hexstr)/2 & ff| payload[0] .. payload[n-1]  |
#
# The fixed-length (TS 11.11 RUN GSM ALGORITHM) variant sends the bare
# payload, i.e. the same buffer without byte 0.

def _check_hexstr(hexstr: str) -> str:
    if hexstr is None:
        raise MalformedHex('hex string is None')
    if len(hexstr) % 2:
        raise MalformedHex('%s has an odd number of hex digits' % hexstr)
    for c in hexstr:
        if c not in string.hexdigits:
            raise MalformedHex("'%s' is not a valid hex digit in %s" % (c, hexstr))
    return hexstr


def hex_to_bytes(hexstr: Hexstr) -> bytes:
    """Decode a hex string (case-insensitive, no separators) into bytes."""
    return bytes(h2b(_check_hexstr(hexstr)))


def length_prefixed_hex_to_bytes(hexstr: Hexstr) -> bytes:
    """Decode a hex string and prepend one byte holding the payload length.

    The length byte is len(hexstr)/2 truncated to 8 bits, so payloads of 256
    bytes and more wrap around. An empty string yields b'\\x00'.
    """
    payload = hex_to_bytes(hexstr)
    return bytes([(len(hexstr) // 2) & 0xff]) + payload


def strip_leading_length_byte(buf: bytes) -> bytes:
    """Drop byte 0 of a length-prefixed buffer; empty input yields empty output."""
    return bytes(buf[1:])


def hex_to_bytes_without_length(hexstr: Hexstr) -> bytes:
    """Decode a hex string via the length-prefixed form and drop the length byte again."""
    return strip_leading_length_byte(length_prefixed_hex_to_bytes(hexstr))


def bytes_to_hex(buf: bytes, offset: int = 0, count: Optional[int] = None) -> Hexstr:
    """Encode (a sub-range of) a buffer as lower case hex, two digits per byte.

    Args:
            buf : buffer to encode
            offset : index of the first byte to encode
            count : number of bytes to encode, default: all bytes after offset
    """
    if count is None:
        count = len(buf) - offset
    if offset < 0 or count < 0 or offset + count > len(buf):
        raise RangeError('range [%d, %d) exceeds buffer of %d bytes' % (offset, offset + count, len(buf)))
    return b2h(buf[offset:offset + count])


def concat(a: bytes, b: bytes) -> bytes:
    return bytes(a) + bytes(b)


def b64_encode(buf: bytes) -> str:
    """Base64 encoding without line wrapping."""
    return base64.b64encode(buf).decode('ascii')


def b64_decode(text: str) -> bytes:
    """Base64 decoding; characters outside of the alphabet are ignored.

    Raises binascii.Error on incorrect padding.
    """
    return base64.b64decode(text)
