"""
Flow Studio Swarm error taxonomy

- ConfigurationError: missing credential or bad setup, never retried
- UnknownAgentTypeError: agent kind outside the closed set
- TransportError: completion service or network failure, retryable
- MalformedOutputError: structured output could not be parsed
- UnknownTopologyError: swarm configured with an unrecognized topology
- PartialRegistryWarning: a plan names an agent the swarm does not host
- TokenValidationError: generated design tokens lack a required group
"""


class FlowStudioError(Exception):
    """Base class for all swarm errors"""


class ConfigurationError(FlowStudioError, ValueError):
    """Missing or invalid configuration"""


class UnknownAgentTypeError(ConfigurationError):
    """Agent type key is not one of the known agent kinds"""


class TransportError(FlowStudioError):
    """The completion service could not be reached or returned an error"""


class MalformedOutputError(FlowStudioError, ValueError):
    """Structured output from the completion service failed to parse"""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


class UnknownTopologyError(FlowStudioError, ValueError):
    """Swarm topology is not hierarchical, mesh or adaptive"""


class PartialRegistryWarning(UserWarning):
    """A decomposition plan references an agent type absent from the registry"""


class TokenValidationError(FlowStudioError, ValueError):
    """Generated design tokens are missing a required group or palette"""

    def __init__(self, message: str, missing: list):
        super().__init__(message)
        self.missing = missing
