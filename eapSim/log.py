# -*- coding: utf-8 -*-

""" eapSim: Logging
"""

#
# (C) 2025 by sysmocom - s.f.m.c. GmbH
# All Rights Reserved
#
# Author: Philipp Maier <pmaier@sysmocom.de>
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

import logging
from cmd2 import style

REDACTED = '<redacted>'

class _EapSimLogHandler(logging.Handler):
    def __init__(self, log_callback):
        super().__init__()
        self.log_callback = log_callback

    def emit(self, record):
        self.log_callback(record)

class EapSimLogger:
    """
    Static class to centralize the log output of the identity builder, the authentication response decoder and
    the tools around them. Configuration (see setup and set_ methods) is optional. As long as no print callback is
    set, log messages are passed to print() without any formatting.

    Authentication material (SRES, Kc, RES, CK, IK, AUTS and the raw SIM responses carrying them) must only be
    logged through the secret() method, which hides the value unless secret logging was enabled explicitly.
    """

    LOG_FMTSTR = "%(levelname)s: %(message)s"
    LOG_FMTSTR_VERBOSE = "%(module)s.%(lineno)d -- " + LOG_FMTSTR
    __formatter = logging.Formatter(LOG_FMTSTR)
    __formatter_verbose = logging.Formatter(LOG_FMTSTR_VERBOSE)

    print_callback = None
    colors = {}
    verbose = False
    log_secrets = False
    logging.root.setLevel(logging.DEBUG)

    def __init__(self):
        raise RuntimeError('static class, do not instantiate')

    @staticmethod
    def setup(print_callback = None, colors:dict = None):
        """
        Set a print callback function and color scheme.
        Args:
            print_callback : callback accepting the resulting log string: print_callback(message:str)
            colors : optional dict assigning a color to a log level (e.g. {logging.WARN: YELLOW})
        """
        EapSimLogger.print_callback = print_callback
        EapSimLogger.colors = colors or {}

    @staticmethod
    def set_verbose(verbose:bool = False):
        """Enable/disable the module.lineno prefix (only effective with a print callback)."""
        EapSimLogger.verbose = verbose

    @staticmethod
    def set_level(level:int = logging.DEBUG):
        """Set the logging level of the root logger."""
        logging.root.setLevel(level)

    @staticmethod
    def set_log_secrets(log_secrets:bool = False):
        """
        Enable/disable logging of authentication material. Never enable this outside of a lab setup.
        Args:
            log_secrets: True = values passed through secret() are logged as they are
        """
        EapSimLogger.log_secrets = log_secrets

    @staticmethod
    def secret(value) -> str:
        """Return value as string for logging, or a placeholder if secret logging is disabled."""
        if EapSimLogger.log_secrets:
            return str(value)
        return REDACTED

    @staticmethod
    def _log_callback(record):
        if not EapSimLogger.print_callback:
            print(record.getMessage())
            return
        if EapSimLogger.verbose:
            formatted_message = EapSimLogger.__formatter_verbose.format(record)
        else:
            formatted_message = EapSimLogger.__formatter.format(record)
        color = EapSimLogger.colors.get(record.levelno)
        if color:
            if isinstance(color, str):
                EapSimLogger.print_callback(color + formatted_message + "\033[0m")
            else:
                EapSimLogger.print_callback(style(formatted_message, fg = color))
        else:
            EapSimLogger.print_callback(formatted_message)

    @staticmethod
    def get(log_facility: str):
        """
        Set up and return a python logger object
        Args:
            log_facility : Name of log facility (e.g. "IDENTITY", "AUTH"...)
        """
        logger = logging.getLogger(log_facility)
        if not any(isinstance(h, _EapSimLogHandler) for h in logger.handlers):
            logger.addHandler(_EapSimLogHandler(log_callback=EapSimLogger._log_callback))
        return logger
