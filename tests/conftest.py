from testerarmy.testing.conftest import (  # noqa: F401
    mock_client,
    mock_github,
    sample_event,
    sample_pr_context,
    sample_result,
)
