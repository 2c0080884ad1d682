"""
StakePoll Package

Token custody and quorum-based governance polls.

Core imports are lazily loaded so that importing a submodule does not pull
in the whole contract. For direct module access, import from submodules:

    from stakepoll.contract import execute, query
    from stakepoll.sandbox import Chain
    from stakepoll.exceptions import ContractError
"""

__version__ = "0.1.0"


# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'Chain':
        from .sandbox import Chain
        return Chain
    elif name == 'ContractError':
        from .exceptions import ContractError
        return ContractError
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'stakepoll' has no attribute {name!r}")

__all__ = ['Chain', 'ContractError', 'load_config']
