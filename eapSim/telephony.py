# -*- coding: utf-8 -*-

""" eapSim: glue between a network configuration, the subscription data and the SIM.

SimAuthHelper is what an EAP supplicant talks to: it selects the
subscription for a network configuration, builds the identities to send
and runs the SIM authentications for the challenges it receives.  As the
supplicant cannot do anything useful with a partial result, every failure
is logged and reported as None.
"""

#
# Copyright (C) 2009-2010  Sylvain Munaut <tnt@246tNt.com>
# Copyright (C) 2010-2024  Harald Welte <laforge@gnumonks.org>
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

from typing import List, Optional, Tuple

from eapSim.auth import SimAuthCommand, AppType, gsm_auth_with_length, gsm_auth_no_length, umts_auth
from eapSim.auth import render_gsm_records
from eapSim.carrier_config import CarrierConfigStore
from eapSim.exceptions import EapSimError, SubscriptionError
from eapSim.identity import build_identity, build_encrypted_identity, build_anonymous_identity
from eapSim.identity import decorate_pseudonym, sim_eap_method_for, split_mcc_mnc
from eapSim.log import EapSimLogger
from eapSim.subscription import SubscriptionProvider, EapConfig, SimInfo

log = EapSimLogger.get("AUTH")


class SimAuthRequestData:
    """Data of a SIM authentication request of the EAP supplicant.

    For EAP-SIM, data contains one RAND per challenge (usually three); for
    EAP-AKA/AKA' it contains RAND and AUTN of the single challenge.
    """

    def __init__(self, network_id: int = -1, protocol: int = -1, ssid: Optional[str] = None,
                 data: Optional[List[str]] = None):
        self.network_id = network_id
        self.protocol = protocol
        self.ssid = ssid
        self.data = data or []


class SimAuthResponseData:
    """Successful response to a SIM authentication request."""

    def __init__(self, type: str, response: str):
        self.type = type
        self.response = response

    def __eq__(self, other):
        return isinstance(other, SimAuthResponseData) and \
            (self.type, self.response) == (other.type, other.response)

    def __repr__(self):
        return "%s(type=%s, response=%s)" % (self.__class__.__name__, self.type,
                                             EapSimLogger.secret(self.response))


class SimAuthHelper:
    def __init__(self, provider: SubscriptionProvider, sim_auth: SimAuthCommand,
                 carrier_config: Optional[CarrierConfigStore] = None):
        """
        Args:
                provider : source of IMSI, operator and IMSI encryption keys
                sim_auth : interface issuing the authentication commands to the SIM
                carrier_config : per-subscription carrier configuration
        """
        self.provider = provider
        self.sim_auth = sim_auth
        self.carrier_config = carrier_config or CarrierConfigStore()

    @staticmethod
    def set_verbose_logging(verbose: bool):
        """Enable/disable logging of authentication material."""
        EapSimLogger.set_log_secrets(verbose)

    def requires_imsi_encryption(self, sub_id: int) -> bool:
        return self.carrier_config.requires_imsi_encryption(sub_id)

    def is_imsi_encryption_info_available(self, sub_id: int) -> bool:
        """Whether IMSI encryption is required and the carrier key is available."""
        if not self.requires_imsi_encryption(sub_id):
            return False
        try:
            return self.provider.fetch_encryption_context(sub_id) is not None
        except SubscriptionError as e:
            log.error("%s" % e)
            return False

    def _select(self, config: EapConfig) -> int:
        sub_id = self.provider.select_subscription(config)
        if sub_id is None:
            raise SubscriptionError("no subscription matches %s" % config)
        return sub_id

    def _ready_sim_info(self, sub_id: int) -> SimInfo:
        sim_info = self.provider.fetch_imsi_and_operator(sub_id)
        if not sim_info.sim_ready:
            raise SubscriptionError("SIM of subscription %d is not ready" % sub_id)
        if not sim_info.mcc_mnc:
            raise SubscriptionError("SIM of subscription %d has no operator" % sub_id)
        return sim_info

    def get_sim_identity(self, config: EapConfig) -> Optional[Tuple[str, str]]:
        """Get the permanent identity for the SIM of a configuration.

        Returns:
                (identity, encrypted identity), the latter being "" if the carrier
                provides no IMSI encryption key; None if no identity can be built,
                including when the SIM is not ready
        """
        try:
            sub_id = self._select(config)
            sim_info = self.provider.fetch_imsi_and_operator(sub_id)
            if not sim_info.sim_ready:
                raise SubscriptionError("SIM of subscription %d is not ready" % sub_id)
            identity = build_identity(sim_eap_method_for(config.eap_method, config.phase2_method),
                                      sim_info.imsi, sim_info.mcc_mnc)
            encryption_context = self.provider.fetch_encryption_context(sub_id)
            if encryption_context is None:
                return (identity, "")
            encrypted_identity = build_encrypted_identity(identity, encryption_context.public_key,
                                                          encryption_context.key_identifier)
        except EapSimError as e:
            log.error("Failed to build the identity: %s" % e)
            return None
        return (identity, encrypted_identity)

    def get_anonymous_identity_with_3gpp_realm(self, config: EapConfig) -> Optional[str]:
        """Get anonymous@realm for the SIM of a configuration, None if the SIM is not ready."""
        try:
            sub_id = self._select(config)
            mcc, mnc = split_mcc_mnc(self._ready_sim_info(sub_id).mcc_mnc)
        except SubscriptionError as e:
            log.error("%s" % e)
            return None
        return build_anonymous_identity(config.eap_method, mcc, mnc,
                                        self.carrier_config.eap_method_prefix_enabled(sub_id))

    def decorate_pseudonym_with_3gpp_realm(self, config: EapConfig, pseudonym: str) -> Optional[str]:
        """Decorate a pseudonym provided by the server with the realm of the SIM of a configuration."""
        if not pseudonym:
            return None
        if "@" in pseudonym:
            return pseudonym
        try:
            sub_id = self._select(config)
            mcc, mnc = split_mcc_mnc(self._ready_sim_info(sub_id).mcc_mnc)
        except SubscriptionError as e:
            log.error("%s" % e)
            return None
        return decorate_pseudonym(pseudonym, mcc, mnc)

    def _gsm_auth_response(self, challenges: List[str], config: EapConfig, app_type: AppType,
                           with_length: bool = True) -> Optional[str]:
        try:
            sub_id = self._select(config)
            if with_length:
                records = gsm_auth_with_length(challenges, self.sim_auth, sub_id, app_type)
            else:
                records = gsm_auth_no_length(challenges, self.sim_auth, sub_id)
        except EapSimError as e:
            log.error("%s" % e)
            return None
        return render_gsm_records(records)

    def get_gsm_sim_auth_response(self, challenges: List[str], config: EapConfig) -> Optional[str]:
        """2G authentication on the USIM application (3GPP TS 31.102 2G_authentication).

        Returns:
                ":kc:sres" per processed challenge, "" if all challenges were
                malformed, None on an invalid response
        """
        return self._gsm_auth_response(challenges, config, AppType.USIM)

    def get_gsm_simple_sim_auth_response(self, challenges: List[str], config: EapConfig) -> Optional[str]:
        """2G authentication on the SIM application, length-prefixed response."""
        return self._gsm_auth_response(challenges, config, AppType.SIM)

    def get_gsm_simple_sim_no_length_auth_response(self, challenges: List[str],
                                                    config: EapConfig) -> Optional[str]:
        """2G authentication on the SIM application, fixed-length TS 11.11 response."""
        return self._gsm_auth_response(challenges, config, AppType.SIM, with_length=False)

    def get_3g_auth_response(self, request: SimAuthRequestData, config: EapConfig) -> Optional[SimAuthResponseData]:
        """3G authentication for EAP-AKA/AKA'.

        Returns:
                SimAuthResponseData of type UMTS-AUTH (":ik:ck:res") or UMTS-AUTS
                (":auts"), None if the request or the response is invalid
        """
        try:
            sub_id = self._select(config)
            result = umts_auth(request.data, self.sim_auth, sub_id)
        except EapSimError as e:
            log.error("%s" % e)
            return None
        return SimAuthResponseData(result.response_type, result.render())

    def get_matching_imsi(self, carrier_id: int) -> Optional[str]:
        """Get the IMSI of the SIM of a carrier, None if there is none or if its
        required IMSI encryption key is not available."""
        try:
            sub_id = self.provider.get_matching_sub_id(carrier_id)
        except SubscriptionError as e:
            log.error("%s" % e)
            return None
        if sub_id is None:
            log.debug("no active SIM card to match the carrier ID.")
            return None
        if self.requires_imsi_encryption(sub_id) and not self.is_imsi_encryption_info_available(sub_id):
            log.debug("required IMSI encryption information is not available.")
            return None
        return self.provider.fetch_imsi_and_operator(sub_id).imsi
