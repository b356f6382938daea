from rangepool.config import settings

LIB_CACHE_SIZE = settings.math.cache_size
