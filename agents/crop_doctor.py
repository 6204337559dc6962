# agents/crop_doctor.py

import io
import os
import random
import tempfile
from typing import List, Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers.json import JsonOutputParser
from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError

from core.config import settings
from core.exceptions import AIServiceError
from core.models import AIDiagnosis, Treatments

MOCK_DIAGNOSES: List[AIDiagnosis] = [
    AIDiagnosis(
        disease="Leaf Spot Disease",
        confidence=0.85,
        description="Common fungal infection affecting leaves, causing brown spots with yellow halos.",
        treatments=Treatments(
            organic=["Neem oil spray", "Copper fungicide", "Remove affected leaves"],
            chemical=["Mancozeb spray", "Propiconazole treatment"],
            preventive=["Improve air circulation", "Avoid overhead watering", "Crop rotation"],
        ),
        severity="medium",
    ),
    AIDiagnosis(
        disease="Powdery Mildew",
        confidence=0.78,
        description="Fungal disease causing white powdery coating on leaves and stems.",
        treatments=Treatments(
            organic=["Baking soda spray", "Milk solution", "Neem oil"],
            chemical=["Sulfur fungicide", "Myclobutanil"],
            preventive=["Reduce humidity", "Increase air circulation", "Avoid overcrowding"],
        ),
        severity="low",
    ),
    AIDiagnosis(
        disease="Bacterial Blight",
        confidence=0.92,
        description="Bacterial infection causing water-soaked lesions and yellowing.",
        treatments=Treatments(
            organic=["Copper-based bactericide", "Remove infected parts"],
            chemical=["Streptomycin spray", "Copper oxychloride"],
            preventive=["Avoid overhead irrigation", "Use disease-free seeds", "Crop rotation"],
        ),
        severity="high",
    ),
]

FALLBACK_DIAGNOSIS = AIDiagnosis(
    disease="Unable to determine specific disease",
    confidence=0.5,
    description=(
        "Based on the symptoms provided, further analysis may be needed. "
        "Please consult with a local agricultural expert for accurate diagnosis."
    ),
    treatments=Treatments(
        organic=["Monitor the crop closely", "Improve air circulation", "Ensure proper watering"],
        chemical=["Consult local agricultural extension service"],
        preventive=["Regular crop monitoring", "Proper field sanitation", "Crop rotation"],
    ),
    severity="medium",
)


class CropDoctorAgent:
    """
    Diagnoses crop diseases from symptom descriptions (chat model) or leaf
    images (Hugging Face image classifier). Without a configured model it
    returns one of the canned diagnoses so the rest of the app keeps working.
    """

    def __init__(self, llm: Optional[BaseChatModel] = None, hf_token: Optional[str] = None,
                 rng: Optional[random.Random] = None):
        self.llm = llm
        self.rng = rng or random.Random()

        self.hf_token = hf_token if hf_token is not None else settings.huggingfacehub_api_token
        self.repo_id = "linkanjarad/mobilenet_v2_1.0_224-plant-disease-identification"
        self.client = None
        if self.hf_token:
            from huggingface_hub import InferenceClient
            self.client = InferenceClient(token=self.hf_token)

        self.parser = JsonOutputParser(pydantic_object=AIDiagnosis)
        self.prompt = ChatPromptTemplate.from_template(
            """Analyze the following crop disease symptoms for {crop_name}:
Symptoms: {symptoms}

{farm_context}

Please provide a detailed analysis including:
1. Most likely disease
2. Confidence level (0-1)
3. Description of the disease
4. Treatment recommendations (organic and chemical)
5. Preventive measures
6. Severity level (low/medium/high)

{format_instructions}

Respond with ONLY the JSON object.
""",
            partial_variables={"format_instructions": self.parser.get_format_instructions()}
        )

    def mock_diagnosis(self) -> AIDiagnosis:
        return self.rng.choice(MOCK_DIAGNOSES).model_copy(deep=True)

    def analyze_symptoms(self, crop_name: str, symptoms: str, farm_context: Optional[str] = None) -> AIDiagnosis:
        print("---CROP DOCTOR: Analyzing symptoms---")
        if not crop_name or not symptoms:
            raise ValueError("Symptoms and crop name are required")
        if self.llm is None:
            return self.mock_diagnosis()

        chain = self.prompt | self.llm
        try:
            response = chain.invoke({
                "crop_name": crop_name,
                "symptoms": symptoms,
                "farm_context": f"Farm context: {farm_context}" if farm_context else "",
            })
        except Exception as e:
            print(f"---CROP DOCTOR: LLM ERROR: {type(e).__name__} - {e}---")
            raise AIServiceError("Failed to analyze crop disease. Please try again.") from e

        try:
            return AIDiagnosis(**self.parser.parse(response.content))
        except (OutputParserException, ValidationError, TypeError) as e:
            print(f"---CROP DOCTOR: Could not parse diagnosis ({type(e).__name__}), using fallback---")
            return FALLBACK_DIAGNOSIS.model_copy(deep=True)

    def analyze_images(self, image_data: Optional[bytes], crop_name: str,
                       symptoms: Optional[str] = None) -> AIDiagnosis:
        """Classifies a leaf image; canned diagnosis when no classifier is configured."""
        print("---CROP DOCTOR: Analyzing image---")
        if not image_data or self.client is None:
            return self.mock_diagnosis()

        from PIL import Image

        # Save to temporary file to ensure robust handling by HF Client
        image = Image.open(io.BytesIO(image_data)).convert("RGB")
        with tempfile.NamedTemporaryFile(suffix=".jpg", delete=False) as tmp:
            image.save(tmp, format="JPEG")
            tmp_path = tmp.name

        try:
            predictions = self.client.image_classification(image=tmp_path, model=self.repo_id)
        except Exception as e:
            print(f"---CROP DOCTOR: Classifier ERROR: {type(e).__name__} - {e}---")
            raise AIServiceError("Failed to analyze crop image. Please try again.") from e
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

        if not predictions:
            return FALLBACK_DIAGNOSIS.model_copy(deep=True)

        top_prediction = predictions[0]
        # Labels look like "Tomato___Early_blight"
        disease = top_prediction.label.split("___")[-1].replace("_", " ")
        print(f"---CROP DOCTOR: Detected {top_prediction.label} ({top_prediction.score:.2f})---")

        if self.llm is not None:
            described = symptoms or "not described"
            diagnosis = self.analyze_symptoms(crop_name, f"{described}. An image classifier detected: {disease}")
            return diagnosis.model_copy(update={"disease": disease, "confidence": top_prediction.score})

        return AIDiagnosis(
            disease=disease,
            confidence=top_prediction.score,
            description=f"Detected on {crop_name} by the leaf image classifier.",
            severity="medium",
        )
