# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from babeldesk.agents.agent import AgentConfig, ChatAgent

__all__ = ["AgentConfig", "ChatAgent"]
