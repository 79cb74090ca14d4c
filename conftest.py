import os

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "padeltour.test_settings")
django.setup()
