from amdcompact.refactor.rewrite import required_ids, rewrite_body

__all__ = ["required_ids", "rewrite_body"]
