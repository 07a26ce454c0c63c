# -*- coding: utf-8 -*-

""" eapSim: Exceptions
"""

#
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


class EapSimError(Exception):
    """Base class of all errors raised by eapSim."""


class MalformedHex(EapSimError, ValueError):
    """A hex string has an odd number of digits or contains a non-hex character."""


class RangeError(EapSimError, IndexError):
    """A sub-range was requested that exceeds the buffer it refers to."""


class MissingImsi(EapSimError):
    """No IMSI was available to build a permanent identity from."""


class UnsupportedMethod(EapSimError):
    """The EAP method has no registered identity prefix."""

    def __init__(self, method):
        super().__init__(method)
        self.method = method

    def __str__(self):
        return "No EAP identity prefix registered for method %s" % self.method


class EncryptionFailed(EapSimError):
    """The public key encryption of the permanent identity failed. The
       authentication attempt must be aborted, never retried in plaintext."""


class InvalidAuthResponse(EapSimError):
    """A SIM/USIM authentication response was absent, too short, carried an
       unknown tag or declared lengths that do not fit into the buffer."""

    def __init__(self, reason: str, response=None):
        """
        Args:
                reason : short human readable description of the problem
                response : the offending (base64) response, if any
        """
        super().__init__(reason)
        self.reason = reason
        self.response = response

    def __str__(self):
        return "Invalid authentication response: %s" % self.reason


class SubscriptionError(EapSimError):
    """No usable subscription could be found, or its SIM is not ready."""
