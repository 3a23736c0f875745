from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .token import Token, TokenBalance, NonFungibleHolding  # noqa: F401
from .pool import PrizePoolRecord  # noqa: F401
from .strategy import PrizeStrategyRecord  # noqa: F401
from .credit import CreditAccount, TimelockEntry  # noqa: F401
from .sortition import SortitionLeaf, SortitionNode  # noqa: F401
from .award import ExternalErc20Award, ExternalErc721Award  # noqa: F401
from .event import PoolEvent  # noqa: F401

__all__ = [
    "Base",
    "Token",
    "TokenBalance",
    "NonFungibleHolding",
    "PrizePoolRecord",
    "PrizeStrategyRecord",
    "CreditAccount",
    "TimelockEntry",
    "SortitionLeaf",
    "SortitionNode",
    "ExternalErc20Award",
    "ExternalErc721Award",
    "PoolEvent",
]
