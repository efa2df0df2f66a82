class MusdIndexerError(Exception):
    """
    Base exception used as the parent class for all exceptions raised by this package.

    Calling code should catch `MusdIndexerError` and derived classes separately before general
    exceptions, e.g.:

    ```
    try:
        musd_indexer.some_function()
    except SpecificMusdIndexerError:
        ... # handle a specific exception
    except MusdIndexerError:
        ... # handle non-specific package exception
    except Exception:
        ... # handle exceptions raised by 3rd party dependencies or Python built-ins
    ```

    An optional string-formatted message may be attached to the exception and retrieved by accessing
    the `.message` attribute.
    """

    message: str | None = None

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
            super().__init__(message)


class MusdIndexerValueError(MusdIndexerError): ...


class ConfigurationError(MusdIndexerError):
    """
    Raised when the configuration file is missing a value required by a command.
    """

    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(message=f"The setting '{setting}' is not defined in the config file.")

    def __reduce__(self) -> tuple[type["ConfigurationError"], tuple[str]]:
        # Pickling will raise an exception if a reduction method is not defined
        return self.__class__, (self.setting,)
