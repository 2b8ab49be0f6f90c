"""
Media format constants.

Centralized definitions of quality labels, extensions and upload values.
"""

# Quality labels accepted for trimming, in order of preference
PREFERRED_QUALITIES = ['hd720', 'medium']

# YouTube quality ladder: frame height -> quality label
QUALITY_BY_HEIGHT = {
    144: 'tiny',
    240: 'small',
    360: 'medium',
    480: 'large',
    720: 'hd720',
    1080: 'hd1080',
    1440: 'hd1440',
    2160: 'hd2160',
}

# Fixed labels of YouTube's progressive itags, whatever the frame shape
ITAG_QUALITY = {
    '17': 'tiny',
    '36': 'small',
    '5': 'small',
    '18': 'medium',
    '43': 'medium',
    '35': 'large',
    '44': 'large',
    '22': 'hd720',
    '45': 'hd720',
    '37': 'hd1080',
    '46': 'hd1080',
}

# Container extension of trimmed output
OUTPUT_EXTENSION = 'mp4'

# Default extension for cached sources when the rendition does not say
DEFAULT_SOURCE_EXTENSION = 'mp4'

# Suffix of in-flight downloads inside a cache entry directory
PARTIAL_SUFFIX = '.part'

# Status code the storage API returns for a created object
UPLOAD_SUCCESS_STATUS = 201

# NanoID alphabet used for object namespaces
NAMESPACE_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789'
NAMESPACE_SIZE = 21
