from typecase.runtime.type_assert import TypeCheckFailure, check_type, assert_type

__all__ = ['TypeCheckFailure', 'check_type', 'assert_type']
