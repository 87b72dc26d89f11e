from .schema import Base, Block, BlockSignature, Validator

__all__ = ["Base", "Block", "BlockSignature", "Validator"]
