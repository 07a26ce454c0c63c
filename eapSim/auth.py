# -*- coding: utf-8 -*-

""" eapSim: SIM/USIM authentication for EAP-SIM, EAP-AKA and EAP-AKA'.

The challenges received from the EAP server are passed to the SIM via an
externally provided SimAuthCommand, the (base64 encoded) SIM responses are
decoded and converted into the colon separated hex records which the EAP
supplicant expects.

Three response encodings exist:

  3GPP TS 31.102 2G_authentication  [Length][RAND]
                 -> [Length][SRES][Length][Cipher Key Kc]
  3GPP TS 11.11  RUN GSM ALGORITHM  [RAND]
                 -> [SRES][Cipher Key Kc]
  3GPP TS 31.102 3G_authentication  [Length][RAND][Length][AUTN]
                 -> 'DB' [Length][RES][Length][CK][Length][IK]
                 -> 'DC' [Length][AUTS]
"""

# Copyright (C) 2022 Harald Welte <laforge@osmocom.org>
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

import abc
import binascii
import enum
import typing
from typing import Iterable, List, Optional

from construct import Struct, Bytes, Int8ub, Int8sb, Check, Switch, this
from construct import ConstructError
from osmocom.utils import b2h

from eapSim.exceptions import InvalidAuthResponse, MalformedHex
from eapSim.utils import hex_to_bytes, length_prefixed_hex_to_bytes, hex_to_bytes_without_length
from eapSim.utils import concat, b64_encode, b64_decode
from eapSim.log import EapSimLogger

log = EapSimLogger.get("AUTH")

# TS 11.11 RUN GSM ALGORITHM response
SRES_LEN = 4
KC_LEN = 8

# TS 31.102 Section 7.1.2.1 response tags
TAG_3G_SUCCESS = 0xDB
TAG_3G_SYNC_FAIL = 0xDC

# Response types as known to the EAP supplicant control interface
UMTS_AUTH_RESP_TYPE = "UMTS-AUTH"
UMTS_AUTS_RESP_TYPE = "UMTS-AUTS"


class AppType(enum.IntEnum):
    """Application on the UICC which runs the authentication."""
    SIM = 1
    USIM = 2


class AuthType(enum.IntEnum):
    EAP_SIM = 128
    EAP_AKA = 129


class SimAuthCommand(abc.ABC):
    """Interface to the entity that issues the actual AUTHENTICATE / RUN GSM ALGORITHM
    command to a SIM. Implementations are expected to be synchronous; calls for the
    same subscription must not overlap."""

    @abc.abstractmethod
    def run(self, sub_id: int, app_type: AppType, auth_type: AuthType, base64_challenge: str) -> Optional[str]:
        """Run one authentication on the SIM.

        Args:
                sub_id : subscription identifying the SIM
                app_type : UICC application to use
                auth_type : authentication context
                base64_challenge : command data, base64 encoded
        Returns:
                base64 encoded response data, or None if the SIM did not respond
        """


class GsmAuthRecord:
    """SRES and Kc of one 2G challenge."""

    def __init__(self, kc: bytes, sres: bytes):
        self.kc = bytes(kc)
        self.sres = bytes(sres)

    def render(self) -> str:
        return ":%s:%s" % (b2h(self.kc), b2h(self.sres))

    def __eq__(self, other):
        return isinstance(other, GsmAuthRecord) and (self.kc, self.sres) == (other.kc, other.sres)

    def __repr__(self):
        return "%s(kc=%s, sres=%s)" % (self.__class__.__name__, EapSimLogger.secret(b2h(self.kc)),
                                       EapSimLogger.secret(b2h(self.sres)))


class UmtsAuthSuccess:
    """RES, CK and IK of a successful 3G authentication."""
    response_type = UMTS_AUTH_RESP_TYPE

    def __init__(self, res: bytes, ck: bytes, ik: bytes):
        self.res = bytes(res)
        self.ck = bytes(ck)
        self.ik = bytes(ik)

    def render(self) -> str:
        return ":%s:%s:%s" % (b2h(self.ik), b2h(self.ck), b2h(self.res))

    def __eq__(self, other):
        return isinstance(other, UmtsAuthSuccess) and \
            (self.res, self.ck, self.ik) == (other.res, other.ck, other.ik)

    def __repr__(self):
        return "%s(res=%s, ck=%s, ik=%s)" % (self.__class__.__name__, EapSimLogger.secret(b2h(self.res)),
                                             EapSimLogger.secret(b2h(self.ck)),
                                             EapSimLogger.secret(b2h(self.ik)))


class UmtsAuthSyncFailure:
    """AUTS of a 3G authentication that failed due to a SQN mismatch; the
    server has to re-synchronize before retrying."""
    response_type = UMTS_AUTS_RESP_TYPE

    def __init__(self, auts: bytes):
        self.auts = bytes(auts)

    def render(self) -> str:
        return ":%s" % b2h(self.auts)

    def __eq__(self, other):
        return isinstance(other, UmtsAuthSyncFailure) and self.auts == other.auts

    def __repr__(self):
        return "%s(auts=%s)" % (self.__class__.__name__, EapSimLogger.secret(b2h(self.auts)))


UmtsAuthResult = typing.Union[UmtsAuthSuccess, UmtsAuthSyncFailure]

# Length fields are signed, a negative length is as bad as one pointing
# beyond the end of the buffer.
_cs_rsp_gsm = Struct('_len_sres'/Int8sb, Check(this._len_sres >= 0), 'sres'/Bytes(this._len_sres),
                     '_len_kc'/Int8sb, Check(this._len_kc >= 0), 'kc'/Bytes(this._len_kc))
_cs_rsp_gsm_no_len = Struct('sres'/Bytes(SRES_LEN), 'kc'/Bytes(KC_LEN))
_rsp_3g_ok = Struct('_len_res'/Int8sb, Check(this._len_res >= 0), 'res'/Bytes(this._len_res),
                    '_len_ck'/Int8sb, Check(this._len_ck >= 0), 'ck'/Bytes(this._len_ck),
                    '_len_ik'/Int8sb, Check(this._len_ik >= 0), 'ik'/Bytes(this._len_ik))
_rsp_3g_sync = Struct('_len_auts'/Int8sb, Check(this._len_auts >= 0), 'auts'/Bytes(this._len_auts))
_cs_rsp_3g = Struct('tag'/Int8ub, 'body'/Switch(this.tag, {TAG_3G_SUCCESS: _rsp_3g_ok,
                                                            TAG_3G_SYNC_FAIL: _rsp_3g_sync}))


def _parse(constr: Struct, buf: bytes):
    try:
        return constr.parse(buf)
    except ConstructError as e:
        raise InvalidAuthResponse("malformed response: %s" % e) from e


def parse_gsm_auth_response(buf: bytes) -> GsmAuthRecord:
    """Parse a length-prefixed 2G response: [len][SRES][len][Kc].

    Trailing bytes after Kc are ignored.
    """
    if buf is None or len(buf) <= 4:
        raise InvalidAuthResponse("response too short")
    c = _parse(_cs_rsp_gsm, buf)
    return GsmAuthRecord(kc=c['kc'], sres=c['sres'])


def parse_gsm_auth_response_no_length(buf: bytes) -> GsmAuthRecord:
    """Parse a fixed-length TS 11.11 response: exactly 4 bytes SRES and 8 bytes Kc."""
    if buf is None or len(buf) != SRES_LEN + KC_LEN:
        raise InvalidAuthResponse("response length is not %u" % (SRES_LEN + KC_LEN))
    c = _parse(_cs_rsp_gsm_no_len, buf)
    return GsmAuthRecord(kc=c['kc'], sres=c['sres'])


def parse_umts_auth_response(buf: bytes) -> UmtsAuthResult:
    """Parse a 3G response, tagged 'DB' (success) or 'DC' (synchronisation failure)."""
    if not buf:
        raise InvalidAuthResponse("empty response")
    c = _parse(_cs_rsp_3g, buf)
    body = c['body']
    if c['tag'] == TAG_3G_SUCCESS:
        # RES, CK and IK must not all be empty
        if len(buf) <= 4:
            raise InvalidAuthResponse("response too short")
        log.debug("successful 3G authentication")
        return UmtsAuthSuccess(res=body['res'], ck=body['ck'], ik=body['ik'])
    if c['tag'] == TAG_3G_SYNC_FAIL:
        log.error("synchronisation failure")
        return UmtsAuthSyncFailure(auts=body['auts'])
    raise InvalidAuthResponse("unknown tag %02x" % c['tag'])


def decode_response(response: Optional[str]) -> bytes:
    """Base64-decode a SIM response, rejecting absent or too short ones."""
    if response is None or len(response) <= 4:
        log.error("bad response - %s" % EapSimLogger.secret(response))
        raise InvalidAuthResponse("response absent or too short", response)
    try:
        buf = b64_decode(response)
    except (binascii.Error, ValueError) as e:
        raise InvalidAuthResponse("response is not valid base64", response) from e
    log.debug("Hex Response - %s" % EapSimLogger.secret(b2h(buf)))
    return buf


def _run_gsm_challenges(challenges: Iterable[Optional[str]], encode, parse,
                        sim_auth: SimAuthCommand, sub_id: int, app_type: AppType) -> List[GsmAuthRecord]:
    records = []
    for challenge in challenges:
        if not challenge:
            continue
        log.debug("RAND = %s" % challenge)
        try:
            rand = encode(challenge)
        except MalformedHex:
            log.error("malformed challenge")
            continue
        response = sim_auth.run(sub_id, app_type, AuthType.EAP_SIM, b64_encode(rand))
        log.debug("Raw Response - %s" % EapSimLogger.secret(response))
        try:
            record = parse(decode_response(response))
        except InvalidAuthResponse as e:
            log.error("%s - %s" % (e, EapSimLogger.secret(response)))
            raise
        log.debug("kc:%s sres:%s" % (EapSimLogger.secret(b2h(record.kc)), EapSimLogger.secret(b2h(record.sres))))
        records.append(record)
    return records


def render_gsm_records(records: Iterable[GsmAuthRecord]) -> str:
    return ''.join(r.render() for r in records)


def gsm_auth_with_length(challenges: Iterable[Optional[str]], sim_auth: SimAuthCommand, sub_id: int,
                         app_type: AppType = AppType.USIM) -> List[GsmAuthRecord]:
    """Run 2G authentication with length-prefixed RANDs and responses.

    Empty and malformed challenges are skipped. Any bad response aborts the
    whole batch with InvalidAuthResponse.

    Args:
            challenges : RAND values as hex strings
            sim_auth : SIM command interface
            sub_id : subscription of the SIM to use
            app_type : AppType.USIM for 3GPP TS 31.102, AppType.SIM for a 2G SIM
    Returns:
            one GsmAuthRecord per processed challenge, in input order
    """
    return _run_gsm_challenges(challenges, length_prefixed_hex_to_bytes, parse_gsm_auth_response,
                               sim_auth, sub_id, app_type)


def gsm_auth_no_length(challenges: Iterable[Optional[str]], sim_auth: SimAuthCommand,
                       sub_id: int) -> List[GsmAuthRecord]:
    """Run 2G authentication with bare RANDs and fixed-length TS 11.11 responses."""
    return _run_gsm_challenges(challenges, hex_to_bytes_without_length, parse_gsm_auth_response_no_length,
                               sim_auth, sub_id, AppType.SIM)


def umts_auth(data: List[str], sim_auth: SimAuthCommand, sub_id: int) -> UmtsAuthResult:
    """Run 3G authentication for one RAND/AUTN pair.

    Args:
            data : [RAND, AUTN] as hex strings
            sim_auth : SIM command interface
            sub_id : subscription of the USIM to use
    Returns:
            UmtsAuthSuccess or UmtsAuthSyncFailure
    """
    if data is None or len(data) != 2:
        log.error("malformed challenge")
        raise InvalidAuthResponse("3G challenge must consist of RAND and AUTN")
    try:
        rand = length_prefixed_hex_to_bytes(data[0])
        autn = length_prefixed_hex_to_bytes(data[1])
    except MalformedHex as e:
        log.error("malformed challenge")
        raise InvalidAuthResponse("malformed challenge: %s" % e) from e
    response = sim_auth.run(sub_id, AppType.USIM, AuthType.EAP_AKA, b64_encode(concat(rand, autn)))
    log.debug("Raw Response - %s" % EapSimLogger.secret(response))
    result = parse_umts_auth_response(decode_response(response))
    log.debug("Supplicant Response - %s" % EapSimLogger.secret(result.render()))
    return result
