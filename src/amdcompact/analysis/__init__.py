from amdcompact.analysis.classify import Classification, ModuleClass, classify

__all__ = ["Classification", "ModuleClass", "classify"]
