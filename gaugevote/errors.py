"""Errors raised by the generator controller."""


class ContractError(Exception):
    """Base class for every error the controller raises.

    Raised directly it plays the role of a generic error carrying a free-form
    message.
    """

    default_message = "Contract error"

    def __init__(self, message=None):
        self.message = self.default_message if message is None else message
        super().__init__(self.message)


class Unauthorized(ContractError):
    default_message = "Unauthorized"


class BPSConversionError(ContractError):
    """A value does not fit into the basic points range."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Basic points conversion error. {value} > 10000")


class BPSLimitError(ContractError):
    default_message = "Basic points sum exceeds limit"


class ZeroVotingPowerError(ContractError):
    default_message = "You can't vote with zero voting power"


class MainPoolVoteProhibitedError(ContractError):
    """A vote was cast for the main pool."""

    def __init__(self, pool):
        self.pool = pool
        super().__init__(f"{pool} is the main pool. Voting for the main pool is prohibited")


class MainPoolMinAllocError(ContractError):
    default_message = "main_pool_min_alloc should be more than 0 and less than 1"


class CooldownError(ContractError):
    """An action was repeated before its cooldown ran out."""

    def __init__(self, days):
        self.days = days
        super().__init__(f"You can only run this action every {days} days")


class InvalidLPTokenAddressError(ContractError):
    """An address is not a known LP token."""

    def __init__(self, address):
        self.address = address
        super().__init__(f"Invalid lp token address: {address}")


class DuplicatedPoolsError(ContractError):
    default_message = "Votes contain duplicated pool addresses"


class TuneNoPoolsError(ContractError):
    default_message = "There are no pools to tune"


class InvalidPoolNumberError(ContractError):
    """A pools limit outside the allowed range."""

    def __init__(self, number):
        self.number = number
        super().__init__(f"Invalid pool number: {number}. Must be within [2, 100] range")


class DuplicatedVotersError(ContractError):
    default_message = "The vector contains duplicated addresses"


class KickVotersLimitExceededError(ContractError):
    default_message = "Exceeded voters limit for kick blacklisted voters operation!"


class MigrationError(ContractError):
    default_message = "Contract can't be migrated!"