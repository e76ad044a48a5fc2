class ExitCodes:
    SUCCESS = 0
    ERROR = 1
    CANCELLED = 130
