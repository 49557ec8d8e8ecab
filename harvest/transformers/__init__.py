from harvest.transformers.normalizer import GameNormalizer, NormalizedBatch

__all__ = ["GameNormalizer", "NormalizedBatch"]
