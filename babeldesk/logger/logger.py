# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import logging
import os

# Create logger object
global_logger = logging.getLogger("BabeldeskLogger")
global_logger.setLevel(os.getenv("BABELDESK_LOG_LEVEL", "INFO").upper())
# Output to console
console_handler = logging.StreamHandler()
console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)-5.5s] %(message)s"))
global_logger.addHandler(console_handler)
