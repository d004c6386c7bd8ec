"""
Chat tool handlers for the appointment chatbot.

The LLM tool-calling layer invokes these tools by name; each one validates
the model's arguments, calls the scheduling engine and returns a short
Japanese string the model relays to the patient.
"""

__version__ = "1.0.0"
