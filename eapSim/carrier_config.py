# -*- coding: utf-8 -*-

""" eapSim: per-subscription carrier configuration.

The carrier configuration decides whether a subscription requires its IMSI
to be encrypted and whether anonymous identities carry the EAP method
prefix.  It is read from a YAML file like:

  subscriptions:
    1:
      imsi_encryption_required: true
      eap_method_prefix_enabled: false
    2:
      eap_method_prefix_enabled: true
"""

#
# (C) 2019 by Sysmocom s.f.m.c. GmbH
# All Rights Reserved
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

from typing import Dict, Optional

import yaml

from eapSim.log import EapSimLogger

log = EapSimLogger.get("CARRIER")


class CarrierConfig:
    """Carrier configuration of a single subscription."""

    def __init__(self, imsi_encryption_required: bool = False, eap_method_prefix_enabled: bool = False):
        self.imsi_encryption_required = imsi_encryption_required
        self.eap_method_prefix_enabled = eap_method_prefix_enabled

    @classmethod
    def from_dict(cls, d: dict) -> 'CarrierConfig':
        return cls(imsi_encryption_required=d.get('imsi_encryption_required') is True,
                   eap_method_prefix_enabled=d.get('eap_method_prefix_enabled') is True)

    def __repr__(self):
        return "%s(imsi_encryption_required=%s, eap_method_prefix_enabled=%s)" % \
            (self.__class__.__name__, self.imsi_encryption_required, self.eap_method_prefix_enabled)


class CarrierConfigStore:
    """Carrier configuration of all subscriptions, optionally backed by a YAML file."""

    def __init__(self, config_file: Optional[str] = None, configs: Optional[Dict[int, CarrierConfig]] = None):
        """
        Args:
                config_file : YAML file to load (and to re-load on reload())
                configs : initial configuration, used when no file is given
        """
        self.config_file = config_file
        self.configs = dict(configs or {})
        if config_file:
            self.reload()

    def reload(self):
        """Re-read the configuration file, e.g. after the carrier configuration changed."""
        if not self.config_file:
            return
        log.debug("Carrier config-file: %s" % self.config_file)
        with open(self.config_file) as cfg:
            doc = yaml.load(cfg, Loader=yaml.FullLoader) or {}
        self.configs = {}
        subscriptions = doc.get('subscriptions')
        if not subscriptions:
            log.error("Carrier config file %s contains no subscriptions" % self.config_file)
            return
        for sub_id, d in subscriptions.items():
            self.configs[int(sub_id)] = CarrierConfig.from_dict(d or {})
            if self.configs[int(sub_id)].imsi_encryption_required:
                log.debug("IMSI encryption is required for %s" % sub_id)
            if self.configs[int(sub_id)].eap_method_prefix_enabled:
                log.debug("EAP Prefix is required for %s" % sub_id)

    def get(self, sub_id: int) -> CarrierConfig:
        config = self.configs.get(sub_id)
        if config is None:
            log.error("Carrier config is missing for: %s" % sub_id)
            return CarrierConfig()
        return config

    def requires_imsi_encryption(self, sub_id: int) -> bool:
        return self.get(sub_id).imsi_encryption_required

    def eap_method_prefix_enabled(self, sub_id: int) -> bool:
        return self.get(sub_id).eap_method_prefix_enabled
