SOIL_PROFILE_SYSTEM_PROMPT = """
You are a soil scientist with knowledge of regional soil surveys.
Return strict JSON only, no markdown and no commentary.
"""

SOIL_PROFILE_PROMPT = """
Describe the typical agricultural topsoil and climate at latitude {latitude} and longitude {longitude}.

Return one JSON object with exactly these string keys:
- "country": country name
- "region": state or region name
- "soilType": common soil classification (e.g. "Black Cotton Soil")
- "ph": typical pH range (e.g. "6.5-7.0")
- "clay": clay percentage (e.g. "35%")
- "sand": sand percentage
- "silt": silt percentage
- "nitrogen": available nitrogen level (e.g. "Medium (280-560 kg/ha)")
- "climate": climate type (e.g. "Tropical semi-arid")
- "description": one sentence on what this soil suits
"""
