"""
Policy evaluation deciding whether SSL should be turned on automatically.
"""
import logging
from typing import Dict

from ..security.models import ConnectionPolicy


AUTO_SSL_SSLMODE = "require"


def parse_conninfo(conninfo: str) -> ConnectionPolicy:
    """
    Parse a libpq keyword/value connection string.

    Values may be single quoted; inside values a backslash escapes the next
    character.

    Raises:
        ValueError: If the string is malformed
    """
    parameters: Dict[str, str] = {}
    pos = 0
    length = len(conninfo)

    while pos < length:
        while pos < length and conninfo[pos].isspace():
            pos += 1
        if pos >= length:
            break

        start = pos
        while pos < length and conninfo[pos] != '=' and not conninfo[pos].isspace():
            pos += 1
        keyword = conninfo[start:pos]
        if not keyword:
            raise ValueError('invalid connection option "" in connection info string')

        while pos < length and conninfo[pos].isspace():
            pos += 1
        if pos >= length or conninfo[pos] != '=':
            raise ValueError(f'missing "=" after "{keyword}" in connection info string')
        pos += 1

        while pos < length and conninfo[pos].isspace():
            pos += 1

        value_chars = []
        if pos < length and conninfo[pos] == "'":
            pos += 1
            while True:
                if pos >= length:
                    raise ValueError("unterminated quoted string in connection info string")
                char = conninfo[pos]
                if char == '\\' and pos + 1 < length:
                    value_chars.append(conninfo[pos + 1])
                    pos += 2
                elif char == "'":
                    pos += 1
                    break
                else:
                    value_chars.append(char)
                    pos += 1
        else:
            while pos < length and not conninfo[pos].isspace():
                char = conninfo[pos]
                if char == '\\' and pos + 1 < length:
                    value_chars.append(conninfo[pos + 1])
                    pos += 2
                else:
                    value_chars.append(char)
                    pos += 1

        parameters[keyword] = ''.join(value_chars)

    return ConnectionPolicy(sslmode=parameters.get('sslmode'), parameters=parameters)


class PolicyEvaluator:
    """Decides from the outbound connection policy whether to enable SSL."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def should_auto_enable(self, policy: ConnectionPolicy) -> bool:
        """
        Return True when outbound connections require SSL.

        A node whose own outbound connections require SSL assumes the other
        nodes in the cluster expect the same from it.
        """
        enabled = policy.sslmode == AUTO_SSL_SSLMODE
        self.logger.debug(f"sslmode={policy.sslmode!r}, auto ssl {'enabled' if enabled else 'disabled'}")
        return enabled
