# tests/core/test_error_handling.py

import logging

import pytest
from unittest import mock

from botocore.exceptions import ClientError as BotocoreClientError
from PIL import UnidentifiedImageError as PILUnidentifiedImageError

from image_seo_pipeline.core.exceptions import (
    CompressionError,
    ConfigurationError,
    StorageError,
)
from image_seo_pipeline.core import error_handling
from image_seo_pipeline.core.error_handling import (
    with_error_handling,
    retry_s3_operation,
    BatchOperationContextManager,
)


def _client_error(code):
    return BotocoreClientError(
        error_response={'Error': {'Code': code, 'Message': 'Details'}},
        operation_name='GetObject'
    )


def _storage_error_from(code):
    try:
        raise _client_error(code)
    except BotocoreClientError as e:
        try:
            raise StorageError(f"S3 failed: {code}") from e
        except StorageError as wrapped:
            return wrapped


@pytest.fixture
def mock_logger():
    """Mock the loggers the decorators fetch through the error_handling module."""
    with mock.patch.object(error_handling, 'logging') as mock_logging:
        mock_log_instance = mock.Mock()
        mock_logging.getLogger.return_value = mock_log_instance
        yield mock_log_instance


def test_mock_logger_leaves_global_logging_alone(mock_logger):
    """Only the error_handling module sees the mocked logger."""
    assert error_handling.logging.getLogger('anything') is mock_logger
    assert logging.getLogger('anything') is not mock_logger
    assert isinstance(logging.getLogger(), logging.Logger)


# --- Tests for @with_error_handling decorator ---

def test_with_error_handling_logs_and_reraises_unmapped(mock_logger):
    """Unmapped errors are logged with a traceback and re-raised unchanged."""
    @with_error_handling
    def func_raising_error():
        raise ValueError("Original error")

    with pytest.raises(ValueError):
        func_raising_error()

    mock_logger.error.assert_called_once()
    args, kwargs = mock_logger.error.call_args
    assert "Original error" in args[0]
    assert kwargs.get('exc_info') is True


def test_with_error_handling_wraps_botocore_error(mock_logger):
    @with_error_handling
    def func_raising_s3_client_error():
        raise _client_error('AccessDenied')

    with pytest.raises(StorageError) as excinfo:
        func_raising_s3_client_error()

    assert "S3 operation failed" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, BotocoreClientError)


def test_with_error_handling_wraps_pil_error(mock_logger):
    @with_error_handling
    def func_raising_pil_error():
        raise PILUnidentifiedImageError("Cannot identify image file")

    with pytest.raises(CompressionError) as excinfo:
        func_raising_pil_error()

    assert "Failed to identify image" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, PILUnidentifiedImageError)


def test_with_error_handling_passes_pipeline_errors_through(mock_logger):
    @with_error_handling
    def func_raising_pipeline_error():
        raise ConfigurationError("bad config")

    with pytest.raises(ConfigurationError, match="bad config"):
        func_raising_pipeline_error()

    mock_logger.error.assert_not_called()


def test_with_error_handling_returns_value(mock_logger):
    @with_error_handling
    def func_ok():
        return 42

    assert func_ok() == 42


# --- Tests for @retry_s3_operation decorator ---

def test_retry_s3_operation_success_on_first_attempt(mock_logger):
    @retry_s3_operation(max_attempts=3, initial_delay=0.01)
    def func_succeeds():
        return "success"

    assert func_succeeds() == "success"
    mock_logger.info.assert_not_called()
    mock_logger.error.assert_not_called()


@mock.patch('time.sleep', return_value=None)
def test_retry_s3_operation_retries_throttling(mock_time_sleep, mock_logger):
    mock_s3_op = mock.Mock()
    mock_s3_op.side_effect = [_storage_error_from('ThrottlingException'), "success"]

    @retry_s3_operation(max_attempts=3, initial_delay=0.01)
    def func_with_retryable_error():
        return mock_s3_op()

    assert func_with_retryable_error() == "success"
    assert mock_s3_op.call_count == 2
    mock_time_sleep.assert_called_once_with(0.01)
    mock_logger.info.assert_called_once()


@mock.patch('time.sleep', return_value=None)
def test_retry_s3_operation_backs_off_exponentially(mock_time_sleep, mock_logger):
    mock_s3_op = mock.Mock()
    mock_s3_op.side_effect = [
        _storage_error_from('SlowDown'),
        _storage_error_from('SlowDown'),
        "success",
    ]

    @retry_s3_operation(max_attempts=3, initial_delay=1, backoff_factor=2)
    def func_to_retry():
        return mock_s3_op()

    assert func_to_retry() == "success"
    assert [c.args[0] for c in mock_time_sleep.call_args_list] == [1, 2]


@mock.patch('time.sleep', return_value=None)
def test_retry_s3_operation_gives_up_after_max_attempts(mock_time_sleep, mock_logger):
    mock_s3_op = mock.Mock(side_effect=_storage_error_from('ThrottlingException'))

    @retry_s3_operation(max_attempts=3, initial_delay=0.01)
    def func_always_throttled():
        return mock_s3_op()

    with pytest.raises(StorageError):
        func_always_throttled()

    assert mock_s3_op.call_count == 3
    assert mock_time_sleep.call_count == 2
    mock_logger.error.assert_called_once()


@mock.patch('time.sleep', return_value=None)
def test_retry_s3_operation_does_not_retry_other_errors(mock_time_sleep, mock_logger):
    mock_s3_op = mock.Mock(side_effect=_storage_error_from('AccessDenied'))

    @retry_s3_operation(max_attempts=3, initial_delay=0.01)
    def func_denied():
        return mock_s3_op()

    with pytest.raises(StorageError):
        func_denied()

    assert mock_s3_op.call_count == 1
    mock_time_sleep.assert_not_called()


def test_retry_s3_operation_propagates_non_storage_errors(mock_logger):
    @retry_s3_operation(max_attempts=3, initial_delay=0.01)
    def func_raising_value_error():
        raise ValueError("not S3")

    with pytest.raises(ValueError, match="not S3"):
        func_raising_value_error()


# --- Tests for BatchOperationContextManager ---

def test_batch_context_manager_success(mock_logger):
    with BatchOperationContextManager(operation_name="TestOpSuccess") as bcm:
        pass

    assert bcm.errors == []
    mock_logger.info.assert_any_call("Starting TestOpSuccess.")
    mock_logger.info.assert_any_call("TestOpSuccess completed successfully.")


def test_batch_context_manager_with_reported_errors(mock_logger):
    with BatchOperationContextManager(operation_name="TestOpErrors") as bcm:
        bcm.add_error("Failed to compress image: boom", "a.jpg")
        bcm.add_error("Only JPEG and PNG formats are supported", "b.gif")

    assert len(bcm.errors) == 2
    assert bcm.errors[0] == {"item": "a.jpg", "error": "Failed to compress image: boom"}
    mock_logger.warning.assert_called_once_with("TestOpErrors completed with 2 error(s).")
    assert mock_logger.error.call_count == 2


def test_batch_context_manager_propagates_unhandled_exception(mock_logger):
    with pytest.raises(RuntimeError, match="crash"):
        with BatchOperationContextManager(operation_name="TestOpCrash"):
            raise RuntimeError("crash")

    mock_logger.error.assert_called_once()
    args, kwargs = mock_logger.error.call_args
    assert "unhandled exception" in args[0]
