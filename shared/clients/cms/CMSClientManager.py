from shared.helper.HelperConfig import HelperConfig
from shared.clients.cms.CMSClientInterface import CMSClientInterface


class CMSClientManager:
    """
    Instantiates the content repository client named by the CMS_ENGINE setting.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the CMS engine name from ENV configuration.

        Returns:
            str: The engine name with only its first letter uppercased, e.g. "Wordpress".
        """
        engine = self.helper_config.get_string_val("CMS_ENGINE", default="wordpress")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> CMSClientInterface:
        """
        Imports shared.clients.cms.<engine>.CMSClient<Engine> and instantiates it.

        Returns:
            CMSClientInterface: The configured content repository client.

        Raises:
            ValueError: If the engine is not supported.
        """
        engine = self._get_engine_from_env()
        className = f"CMSClient{engine}"
        try:
            module = __import__(
                f"shared.clients.cms.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported CMS engine specified: '{engine}'. Error: {e}")
        client_instance = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated CMS client for engine: %s", engine)
        return client_instance

    def get_client(self) -> CMSClientInterface:
        """
        Returns the instantiated content repository client.
        """
        return self.client
