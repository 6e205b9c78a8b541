from .resolve_video import ResolutionOutcome, ResolveVideoUseCase

__all__ = ["ResolutionOutcome", "ResolveVideoUseCase"]
