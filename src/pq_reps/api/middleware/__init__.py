from .rate_limit import TokenBucketLimiter, check_rate_limit
