"""Custom domain verification reconciler."""

from typing import Optional

from identity_sync.client.base import ManagementAPI
from identity_sync.data import ResourceData
from identity_sync.models import CustomDomain
from identity_sync.utils.errors import ErrorContext, RemoteTransientError, error_handler
from identity_sync.utils.logging import get_logger
from identity_sync.utils.retry import NonRetryableError, PollTimeoutError, RetryableError, RetryStrategy

from .base import BaseReconciler

logger = get_logger(__name__)

READY = "ready"


class CustomDomainVerificationReconciler(BaseReconciler):
    """Waits for a custom domain to finish verification.

    Creating the resource polls the verify endpoint until the domain reports
    ``ready``; deleting it only stops tracking.
    """

    resource_type = "custom_domain_verification"
    replace_fields = ("custom_domain_id",)

    DEFAULT_TIMEOUT = 300.0

    def __init__(
        self,
        api: ManagementAPI,
        retry_strategy: Optional[RetryStrategy] = None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        """Initialize reconciler.

        Args:
            api: Management API managers
            retry_strategy: Retry and poll policy
            timeout: Budget in seconds for verification to complete
        """
        super().__init__(api, retry_strategy)
        self.timeout = timeout

    def _create(self, d: ResourceData) -> None:
        custom_domain_id = d.get("custom_domain_id")

        def attempt() -> CustomDomain:
            try:
                custom_domain = self.api.custom_domain.verify(custom_domain_id)
            except Exception as e:
                raise NonRetryableError(e)

            if custom_domain.status != READY:
                raise RetryableError(f'custom domain has status "{custom_domain.status}"')
            return custom_domain

        context = ErrorContext(
            resource_id=custom_domain_id,
            resource_type=self.resource_type,
            operation='create',
        )
        try:
            verified = self.retry_strategy.poll(attempt, self.timeout)
        except PollTimeoutError as e:
            raise RemoteTransientError(str(e), context=context, cause=e) from e
        except Exception as e:
            raise error_handler.handle_exception(e, context) from e

        logger.info(f"Custom domain {verified.domain} verified")
        d.set_id(verified.id)

    def _read(self, d: ResourceData) -> None:
        custom_domain = self._read_or_clear(d, self.api.custom_domain.read, d.id)
        if custom_domain is None:
            return
        d.set_fields({"custom_domain_id": custom_domain.id})

    def _update(self, d: ResourceData) -> None:
        # Every attribute forces a replacement
        pass

    def _delete(self, d: ResourceData) -> None:
        pass
