"""
Prompt agent: criterion template splitting and Azure OpenAI chat over HTTP.
"""
__version__ = '0.1.0'
