class CacheKeyGenerator:
    """
    Cache key generation for the entity tiers and list-style collections.
    Tiers use distinct namespaces so they never collide.
    """

    @staticmethod
    def fast_profile(entity_id: int) -> str:
        return f"pol_fast_{entity_id}"

    @staticmethod
    def full_profile(entity_id: int) -> str:
        return f"full_profile_{entity_id}"

    @staticmethod
    def collection(name: str, *parts) -> str:
        """Key for a list-style collection, e.g. collection('despesas', 42, 2024)"""
        suffix = "_".join(str(p) for p in parts if p is not None and p != "")
        return f"{name}_{suffix}" if suffix else name
