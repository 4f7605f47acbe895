PROMPT_TEMPLATE = "Convert the following photo into {image_type} with {style} style."

DETAILS_SUFFIX = " Add details: {instructions}."

IMAGE_TYPES = [
    "art painting",
    "caricature",
]

STYLE_OPTIONS = [
    "watercolor",
    "impressionist",
    "digital art",
    "oil painting",
    "pencil sketch",
    "3D cartoon",
    "anime",
    "cute sticker",
    "US comic",
    "classic",
]

DEFAULT_IMAGE_TYPE = "caricature"
DEFAULT_STYLE = "3D cartoon"

MISSING_INPUT_MESSAGE = "Please upload a photo and choose a style before generating 😊."

NO_IMAGE_MESSAGE = "Failed to generate an image. Try again with a different prompt or image."

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."

SUCCESS_MESSAGE = (
    "✅ Your AKKOR KARIKATUR image is ready! "
    "You can download it or change the style again."
)

ERROR_PREFIX = "Error: "
