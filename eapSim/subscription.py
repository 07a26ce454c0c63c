# coding=utf-8
"""Obtaining subscription data (IMSI, operator, IMSI encryption key) from an external source.

This module contains a base class and a concrete implementation of a
subscription provider.  The identity builder and the authentication helper
never talk to a SIM themselves, they only consume the plain data returned
by a provider.

The CSV based provider is meant for lab setups and tests, where the data of
the SIMs in use is kept in a file on disk.
"""

# (C) 2021-2025 by Sysmocom s.f.m.c. GmbH
# All Rights Reserved
#
# Author: Philipp Maier, Harald Welte
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

from typing import List, Dict, Optional

import abc
import csv
import os

from eapSim.exceptions import SubscriptionError
from eapSim.identity import Eap, Phase2, EncryptionContext, is_authentication_sim_based
from eapSim.log import EapSimLogger

log = EapSimLogger.get("SUBSCR")

UNKNOWN_CARRIER_ID = -1


class EapConfig:
    """The part of a network configuration that matters for SIM based authentication."""

    def __init__(self, eap_method: Eap, phase2_method: Phase2 = Phase2.NONE,
                 carrier_id: int = UNKNOWN_CARRIER_ID, passpoint: bool = False):
        self.eap_method = eap_method
        self.phase2_method = phase2_method
        self.carrier_id = carrier_id
        self.passpoint = passpoint

    def is_authentication_sim_based(self) -> bool:
        return is_authentication_sim_based(self.eap_method, self.phase2_method)

    def __repr__(self):
        return "%s(eap_method=%s, phase2_method=%s, carrier_id=%d)" % \
            (self.__class__.__name__, self.eap_method.name, self.phase2_method.name, self.carrier_id)


class SubscriptionInfo:
    def __init__(self, sub_id: int, carrier_id: int = UNKNOWN_CARRIER_ID):
        self.sub_id = sub_id
        self.carrier_id = carrier_id


class SimInfo:
    """IMSI and operator of a subscription, as read from its SIM."""

    def __init__(self, imsi: Optional[str], mcc_mnc: str = "", sim_ready: bool = False):
        self.imsi = imsi
        self.mcc_mnc = mcc_mnc
        self.sim_ready = sim_ready

    def __repr__(self):
        return "%s(imsi=%s, mcc_mnc=%s, sim_ready=%s)" % (self.__class__.__name__, self.imsi,
                                                          self.mcc_mnc, self.sim_ready)


class SubscriptionProvider(abc.ABC):
    """Base class, not containing any concrete data source."""

    @abc.abstractmethod
    def list_subscriptions(self) -> List[SubscriptionInfo]:
        """Return all active subscriptions."""

    @abc.abstractmethod
    def default_data_subscription(self) -> Optional[int]:
        """Return the subscription used for mobile data, if any."""

    @abc.abstractmethod
    def fetch_imsi_and_operator(self, sub_id: int) -> SimInfo:
        """Read IMSI and MCC/MNC of the SIM of a subscription.

        Args:
                sub_id : subscription to query
        Returns:
                SimInfo; mcc_mnc is only meaningful if sim_ready is set
        """

    @abc.abstractmethod
    def fetch_encryption_context(self, sub_id: int) -> Optional[EncryptionContext]:
        """Return the carrier key for IMSI encryption, None if the carrier provides none.
        Raises SubscriptionError if the key exists but cannot be read."""

    def is_sim_present(self, sub_id: Optional[int]) -> bool:
        return any(s.sub_id == sub_id for s in self.list_subscriptions())

    def get_matching_sub_id(self, carrier_id: int) -> Optional[int]:
        """Find the subscription of a carrier. The default data subscription wins if
        more than one subscription belongs to the carrier."""
        data_sub_id = self.default_data_subscription()
        match_sub_id = None
        for sub in self.list_subscriptions():
            if sub.carrier_id == carrier_id:
                match_sub_id = sub.sub_id
                if match_sub_id == data_sub_id:
                    break
        log.debug("matching subId is %s" % match_sub_id)
        return match_sub_id

    def select_subscription(self, config: EapConfig) -> Optional[int]:
        """Select the subscription whose SIM is used to authenticate with config.

        Returns:
                subscription id, None if there is no suitable subscription
        """
        if config.passpoint or config.carrier_id != UNKNOWN_CARRIER_ID:
            return self.get_matching_sub_id(config.carrier_id)
        # legacy configuration without carrier id
        if not config.is_authentication_sim_based():
            log.warning("The legacy config is not using EAP-SIM.")
            return None
        data_sub_id = self.default_data_subscription()
        if self.is_sim_present(data_sub_id):
            log.debug("carrierId is not assigned, using the default data sub.")
            return data_sub_id
        log.debug("data sim is not present.")
        return None


def _parse_bool(s: Optional[str]) -> bool:
    return (s or '').strip().lower() in ['1', 'true', 'yes', 'y']


class SubscriptionProviderCsv(SubscriptionProvider):
    """Subscription provider implementation reading a CSV file with one row per subscription.

    Columns (case-insensitive): SUB_ID, IMSI, MCC_MNC, SIM_READY, CARRIER_ID, DEFAULT_DATA,
    PUBKEY_FILE, KEY_ID.  PUBKEY_FILE is a PEM or DER file, relative paths are resolved
    against the directory of the CSV file.
    """

    COLUMNS = ['SUB_ID', 'IMSI', 'MCC_MNC', 'SIM_READY', 'CARRIER_ID', 'DEFAULT_DATA', 'PUBKEY_FILE', 'KEY_ID']

    def __init__(self, csv_filename: str):
        """
        Args:
                csv_filename : file name (path) of CSV file containing the subscriptions
        """
        self.csv_filename = csv_filename
        self.rows = {}  # type: Dict[int, Dict[str, str]]
        with open(csv_filename, 'r') as csv_file:
            cr = csv.DictReader(csv_file)
            if not cr.fieldnames:
                raise RuntimeError("CSV-File '%s' has no header" % csv_filename)
            cr.fieldnames = [field.upper() for field in cr.fieldnames]
            if 'SUB_ID' not in cr.fieldnames:
                raise RuntimeError("CSV-File '%s' lacks column 'SUB_ID'" % csv_filename)
            for row in cr:
                self.rows[int(row['SUB_ID'])] = row

    def _row(self, sub_id: int) -> Dict[str, str]:
        row = self.rows.get(sub_id)
        if row is None:
            raise KeyError("CSV-File '%s' has no subscription %s" % (self.csv_filename, sub_id))
        return row

    def list_subscriptions(self) -> List[SubscriptionInfo]:
        subs = []
        for sub_id, row in self.rows.items():
            carrier_id = row.get('CARRIER_ID') or str(UNKNOWN_CARRIER_ID)
            try:
                subs.append(SubscriptionInfo(sub_id, int(carrier_id)))
            except ValueError as e:
                raise SubscriptionError("CSV-File '%s': invalid CARRIER_ID of subscription %s"
                                        % (self.csv_filename, sub_id)) from e
        return subs

    def default_data_subscription(self) -> Optional[int]:
        for sub_id, row in self.rows.items():
            if _parse_bool(row.get('DEFAULT_DATA')):
                return sub_id
        return None

    def fetch_imsi_and_operator(self, sub_id: int) -> SimInfo:
        row = self._row(sub_id)
        return SimInfo(imsi=row.get('IMSI') or None, mcc_mnc=row.get('MCC_MNC') or "",
                       sim_ready=_parse_bool(row.get('SIM_READY')))

    def fetch_encryption_context(self, sub_id: int) -> Optional[EncryptionContext]:
        row = self._row(sub_id)
        pubkey_file = row.get('PUBKEY_FILE')
        if not pubkey_file:
            return None
        if not os.path.isabs(pubkey_file):
            pubkey_file = os.path.join(os.path.dirname(os.path.abspath(self.csv_filename)), pubkey_file)
        try:
            with open(pubkey_file, 'rb') as f:
                key_data = f.read()
        except OSError as e:
            raise SubscriptionError("cannot read public key of subscription %s: %s" % (sub_id, e)) from e
        return EncryptionContext(key_data, row.get('KEY_ID') or None)
