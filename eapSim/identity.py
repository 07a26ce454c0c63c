# -*- coding: utf-8 -*-

""" eapSim: EAP-SIM / EAP-AKA / EAP-AKA' identities according to RFC 4186, RFC 4187 and RFC 5448.

Identity format:

  Prefix | [IMSI || Encrypted IMSI] | @realm | {, Key Identifier AVP}

where "|" denotes concatenation, "||" exclusive alternatives and "{}" an
optional value.  The realm is the 3GPP network domain name derived from
MCC/MNC according to 3GPP TS 23.003.

Prefix value:
  "\\0" - encrypted identity
  "0"  - EAP-AKA identity
  "1"  - EAP-SIM identity
  "6"  - EAP-AKA' identity
"""

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

import enum
from typing import Optional, Tuple, Union

from bidict import frozenbidict
from Cryptodome.Cipher import PKCS1_OAEP
from Cryptodome.Hash import SHA256
from Cryptodome.PublicKey import RSA

from eapSim.exceptions import MissingImsi, UnsupportedMethod, EncryptionFailed
from eapSim.utils import b64_encode
from eapSim.log import EapSimLogger

log = EapSimLogger.get("IDENTITY")

ENCRYPTED_IDENTITY_PREFIX = "\0"
ANONYMOUS_IDENTITY = "anonymous"
THREE_GPP_NAI_REALM_FORMAT = "wlan.mnc%s.mcc%s.3gppnetwork.org"

PublicKey = Union[RSA.RsaKey, bytes, str]


class Eap(enum.IntEnum):
    """Outer EAP method of an enterprise network configuration."""
    NONE = -1
    PEAP = 0
    TLS = 1
    TTLS = 2
    PWD = 3
    SIM = 4
    AKA = 5
    AKA_PRIME = 6
    UNAUTH_TLS = 7


class Phase2(enum.IntEnum):
    """Inner (phase 2) method of a tunneled EAP configuration."""
    NONE = 0
    PAP = 1
    MSCHAP = 2
    MSCHAPV2 = 3
    GTC = 4
    SIM = 5
    AKA = 6
    AKA_PRIME = 7


SIM_BASED_METHODS = (Eap.SIM, Eap.AKA, Eap.AKA_PRIME)

EAP_METHOD_PREFIX = frozenbidict({
    Eap.AKA: "0",
    Eap.SIM: "1",
    Eap.AKA_PRIME: "6",
})

_PHASE2_TO_EAP = {
    Phase2.SIM: Eap.SIM,
    Phase2.AKA: Eap.AKA,
    Phase2.AKA_PRIME: Eap.AKA_PRIME,
}


class EncryptionContext:
    """Carrier public key for IMSI privacy, optionally with the key identifier the
    server needs to select the matching private key."""

    def __init__(self, public_key: PublicKey, key_identifier: Optional[str] = None):
        self.public_key = public_key
        self.key_identifier = key_identifier

    def __repr__(self):
        return "%s(key_identifier=%r)" % (self.__class__.__name__, self.key_identifier)


def is_authentication_sim_based(eap_method: Eap, phase2_method: Phase2 = Phase2.NONE) -> bool:
    if eap_method in SIM_BASED_METHODS:
        return True
    return eap_method == Eap.PEAP and phase2_method in _PHASE2_TO_EAP


def sim_eap_method_for(eap_method: Eap, phase2_method: Phase2 = Phase2.NONE) -> Eap:
    """Return the outer EAP method whose identity prefix applies to a configuration.

    Known inner methods of PEAP are translated into the equivalent outer
    method. Configurations which are not SIM based yield Eap.NONE.
    """
    if not is_authentication_sim_based(eap_method, phase2_method):
        return Eap.NONE
    if eap_method == Eap.PEAP:
        return _PHASE2_TO_EAP[phase2_method]
    return Eap(eap_method)


def eap_method_prefix(method: Eap) -> str:
    """Return the one-character identity prefix of an EAP method."""
    try:
        return EAP_METHOD_PREFIX[method]
    except KeyError:
        raise UnsupportedMethod(method) from None


def split_mcc_mnc(mcc_mnc: str) -> Tuple[str, str]:
    """Split a SIM operator string (MCC followed by a 2 or 3 digit MNC)."""
    return mcc_mnc[:3], mcc_mnc[3:]


def build_realm(mcc: str, mnc: str) -> str:
    """Build the 3GPP NAI realm. A 2-digit MNC is padded with a leading zero,
    MNCs of any other length are used as they are."""
    if len(mnc) == 2:
        mnc = "0" + mnc
    return THREE_GPP_NAI_REALM_FORMAT % (mnc, mcc)


def build_identity(method: Eap, imsi: str, mcc_mnc: Optional[str] = None) -> str:
    """Build the permanent (plaintext) identity.

    Args:
            method : outer EAP method, selects the identity prefix
            imsi : IMSI of the subscription
            mcc_mnc : SIM operator (MCC+MNC). If empty, MCC and a 3-digit MNC
                      are taken from the IMSI, which is wrong for networks
                      with 2-digit MNCs; callers should pass it whenever known.
    Returns:
            prefix | IMSI @ realm
    """
    if not imsi:
        log.error("No IMSI or IMSI is empty")
        raise MissingImsi("cannot build an identity without IMSI")
    prefix = eap_method_prefix(method)
    if mcc_mnc:
        mcc, mnc = split_mcc_mnc(mcc_mnc)
    else:
        mcc, mnc = imsi[0:3], imsi[3:6]
    return prefix + imsi + "@" + build_realm(mcc, mnc)


def _import_public_key(key: PublicKey) -> RSA.RsaKey:
    if isinstance(key, RSA.RsaKey):
        return key
    if isinstance(key, (bytes, bytearray, str)):
        return RSA.import_key(key)
    raise TypeError("unsupported public key type %s" % type(key).__name__)


def encrypt_with_public_key(key: PublicKey, data: bytes) -> bytes:
    """Encrypt data with RSA-OAEP (SHA-256, MGF1 with SHA-256).

    Args:
            key : RSA key object, or its PEM/DER encoding
            data : plaintext, must fit into a single OAEP block
    Returns:
            ciphertext of the key's modulus size
    """
    try:
        rsa_key = _import_public_key(key)
        cipher = PKCS1_OAEP.new(rsa_key, hashAlgo=SHA256)
        return cipher.encrypt(data)
    except (ValueError, TypeError, IndexError, NotImplementedError) as e:
        log.error("Encryption failed: %s" % e)
        raise EncryptionFailed(str(e)) from e


def build_encrypted_identity(identity: str, key: PublicKey, key_identifier: Optional[str] = None) -> str:
    """Encrypt a permanent identity.

    Args:
            identity : permanent identity as returned by build_identity()
            key : carrier public key for IMSI encryption
            key_identifier : optional key identifier, appended as AVP
    Returns:
            "\\0" + base64(RSA-OAEP(identity)) + {"," + key_identifier}
    """
    if not identity:
        raise EncryptionFailed("identity is empty")
    ciphertext = encrypt_with_public_key(key, identity.encode('utf-8'))
    encrypted = ENCRYPTED_IDENTITY_PREFIX + b64_encode(ciphertext)
    if key_identifier is not None:
        encrypted += "," + key_identifier
    return encrypted


def build_anonymous_identity(method: Eap, mcc: str, mnc: str, prefix_enabled: bool = False) -> str:
    """Build anonymous@realm, optionally preceded by the EAP method prefix."""
    prefix = ""
    if prefix_enabled:
        prefix = EAP_METHOD_PREFIX.get(method, "")
    return prefix + ANONYMOUS_IDENTITY + "@" + build_realm(mcc, mnc)


def decorate_pseudonym(pseudonym: str, mcc: str, mnc: str) -> Optional[str]:
    """Append the 3GPP realm to a pseudonym, unless the server already sent it decorated."""
    if not pseudonym:
        return None
    if "@" in pseudonym:
        return pseudonym
    return "%s@%s" % (pseudonym, build_realm(mcc, mnc))


def is_anonymous_at_realm(identity: str) -> bool:
    """Tell whether identity is anonymous@realm, with or without one leading method prefix."""
    if not identity:
        return False
    anonymous_id = ANONYMOUS_IDENTITY + "@"
    return identity.startswith(anonymous_id) or identity[1:].startswith(anonymous_id)
